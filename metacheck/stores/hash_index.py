"""Content-hash index over the candidate files of a reconciliation pass."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional

from ..hashing import keccak256, normalize_hash
from ..models import CandidateFile


class ContentHashIndex:
    """Maps keccak-256 digests to one representative candidate file.

    When two candidates share a digest the later insertion wins. Equal
    digests are taken to mean equal content, which rests on keccak-256
    collision resistance.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CandidateFile] = {}

    @classmethod
    def build(cls, candidates: Iterable[CandidateFile]) -> "ContentHashIndex":
        index = cls()
        for candidate in candidates:
            index.insert(keccak256(candidate.content), candidate)
        return index

    def lookup(self, digest: str) -> Optional[CandidateFile]:
        return self._entries.get(normalize_hash(digest))

    def insert(self, digest: str, candidate: CandidateFile) -> None:
        self._entries[normalize_hash(digest)] = candidate

    def copy(self) -> "ContentHashIndex":
        """Return an independent index with the same entries."""
        clone = type(self)()
        clone._entries = dict(self._entries)
        return clone

    def __contains__(self, digest: object) -> bool:
        return isinstance(digest, str) and normalize_hash(digest) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


__all__ = ["ContentHashIndex"]
