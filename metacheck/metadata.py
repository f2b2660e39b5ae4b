"""Recognition of Solidity metadata documents inside arbitrary text blobs."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .logging import get_logger
from .models import CandidateFile, MetadataDocument

# Metadata serialised as an escaped string inside another JSON document,
# e.g. the ``metadata`` field of a truffle build artifact.
NESTED_METADATA_PATTERN = re.compile(
    r'"{\\"compiler\\":{\\"version\\".*?},\\"version\\":1}"'
)

_EXPECTED_TARGETS = 1


class NoMetadataFoundError(RuntimeError):
    """Raised when a batch contains no recognizable metadata document."""


@dataclass
class ScanResult:
    """Partition of a batch into metadata documents and candidate sources."""

    metadata: List[MetadataDocument] = field(default_factory=list)
    sources: List[CandidateFile] = field(default_factory=list)


class MetadataScanner:
    """Finds metadata documents in a batch of files."""

    def __init__(self) -> None:
        self.logger = get_logger("metadata")

    def scan(self, files: Iterable[CandidateFile]) -> ScanResult:
        """Split ``files`` into metadata documents and candidate sources.

        Raises:
            NoMetadataFoundError: if no file in the batch holds metadata.
        """
        result = ScanResult()
        for file in files:
            document = self.extract(file.text(), origin=file.path)
            if document is None:
                result.sources.append(file)
                continue
            if document.target_count != _EXPECTED_TARGETS:
                self.logger.warning(
                    "Metadata (%s) specifying %d entries in compilationTarget; should be: %d",
                    file.path or "<memory>",
                    document.target_count,
                    _EXPECTED_TARGETS,
                )
            result.metadata.append(document)

        if not result.metadata:
            message = 'Metadata file not found. Did you include "metadata.json"?'
            self.logger.error(message)
            raise NoMetadataFoundError(message)

        self.logger.debug(
            "Recognized %d metadata documents and %d candidate sources",
            len(result.metadata),
            len(result.sources),
        )
        return result

    def extract(self, text: str, *, origin: Optional[str] = None) -> Optional[MetadataDocument]:
        """Return the metadata document carried by ``text``, if any."""
        document = _parse_metadata(text, origin=origin)
        if document is not None:
            return document

        match = NESTED_METADATA_PATTERN.search(text)
        if match:
            document = _parse_metadata(match.group(0), origin=origin)
            if document is not None:
                return document

        self.logger.debug("Skipping %s: not a metadata document", origin or "<memory>")
        return None


def _parse_metadata(text: str, *, origin: Optional[str]) -> Optional[MetadataDocument]:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None

    document = MetadataDocument.from_dict(value, origin=origin)
    if document is not None:
        return document

    # Double-encoded input (a JSON string holding the document).
    if not isinstance(value, str):
        return None
    try:
        value = json.loads(value)
    except (ValueError, RecursionError):
        return None
    return MetadataDocument.from_dict(value, origin=origin)


__all__ = ["MetadataScanner", "NoMetadataFoundError", "ScanResult", "NESTED_METADATA_PATTERN"]
