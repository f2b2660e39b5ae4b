"""Per-document matching of declared sources against supplied content."""

from __future__ import annotations

from .fetch import RemoteFetcher
from .hashing import keccak256
from .logging import get_logger
from .models import (
    CandidateFile,
    Found,
    Invalid,
    MetadataDocument,
    Missing,
    ReconciliationResult,
    SourceClassification,
    SourceSpec,
)
from .stores import ContentHashIndex

HASH_MISMATCH_REASON = "The calculated and the provided hash values don't match."


class Reconciler:
    """Classifies every declared source of a metadata document.

    Resolution order per source is inline content, then the content-hash
    index, then the remote fetcher. Sources are resolved one after another
    in declared order because a successful fetch is folded back into the
    index, where later sources with the same hash pick it up.
    """

    def __init__(self, fetcher: RemoteFetcher | None = None) -> None:
        self.fetcher = fetcher
        self.logger = get_logger("reconciler")

    def reconcile(
        self, metadata: MetadataDocument, index: ContentHashIndex
    ) -> ReconciliationResult:
        """Return the classification of each source declared by ``metadata``.

        ``index`` is mutated when fetched content is added to it.
        """
        result = ReconciliationResult()
        for path, spec in metadata.sources.items():
            result.classifications[path] = self._classify(spec, index)
        return result

    def _classify(self, spec: SourceSpec, index: ContentHashIndex) -> SourceClassification:
        if spec.content is not None:
            if keccak256(spec.content) != spec.keccak256:
                self.logger.debug("Inline content of %s does not match %s", spec.path, spec.keccak256)
                return Invalid(HASH_MISMATCH_REASON)
            return Found(spec.content)

        if not spec.has_hash:
            self.logger.debug("Source %s declares no keccak256 hash", spec.path)
            return Missing(keccak256="", urls=list(spec.urls or []))

        candidate = index.lookup(spec.keccak256)
        if candidate is not None:
            return Found(candidate.text())

        if spec.urls is not None and self.fetcher is not None:
            fetched = self.fetcher.fetch(spec.path, spec.urls, spec.keccak256)
            if fetched is not None:
                index.insert(spec.keccak256, CandidateFile(content=fetched, path=spec.path))
                return Found(fetched.decode("utf-8", errors="replace"))

        return Missing(keccak256=spec.keccak256, urls=list(spec.urls or []))


__all__ = ["Reconciler", "HASH_MISMATCH_REASON"]
