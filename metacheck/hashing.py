"""Keccak-256 content hashing as mandated by the Solidity metadata format."""

from __future__ import annotations

from Crypto.Hash import keccak


def keccak256(data: bytes | str) -> str:
    """Return the 0x-prefixed lowercase keccak-256 digest of ``data``.

    Strings are hashed over their UTF-8 encoding. No normalisation or trimming
    is applied, so a trailing newline changes the digest.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    digest = keccak.new(digest_bits=256)
    digest.update(data)
    return "0x" + digest.hexdigest()


def normalize_hash(value: str) -> str:
    cleaned = value.strip().lower()
    if not cleaned.startswith("0x"):
        cleaned = "0x" + cleaned
    return cleaned


__all__ = ["keccak256", "normalize_hash"]
