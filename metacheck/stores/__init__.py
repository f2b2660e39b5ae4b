"""Ephemeral stores used during a reconciliation pass."""

from .hash_index import ContentHashIndex

__all__ = ["ContentHashIndex"]
