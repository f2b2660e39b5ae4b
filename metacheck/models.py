"""Core data models shared across metacheck components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .hashing import normalize_hash

SOLIDITY_LANGUAGE = "Solidity"


@dataclass
class CandidateFile:
    """A supplied blob together with the path it came from, if known."""

    content: bytes
    path: Optional[str] = None

    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass
class SourceSpec:
    """One entry of a metadata document's ``sources`` mapping."""

    path: str
    keccak256: str
    content: Optional[str] = None
    urls: Optional[List[str]] = None

    @property
    def has_hash(self) -> bool:
        return bool(self.keccak256)


@dataclass
class MetadataDocument:
    """Validated view of a Solidity compiler metadata document."""

    language: str
    compiler: Any
    sources: Dict[str, SourceSpec]
    compilation_target: Dict[str, str]
    settings: Dict[str, Any]
    raw: Dict[str, Any]
    origin: Optional[str] = None

    @property
    def target_count(self) -> int:
        return len(self.compilation_target)

    @property
    def compiler_version(self) -> str:
        if isinstance(self.compiler, str):
            return self.compiler
        version = self.compiler.get("version") if isinstance(self.compiler, dict) else None
        return version if isinstance(version, str) else ""

    @classmethod
    def from_dict(
        cls, payload: object, *, origin: Optional[str] = None
    ) -> Optional["MetadataDocument"]:
        """Return a document when ``payload`` has the metadata shape, else None."""
        if not isinstance(payload, dict) or not is_metadata(payload):
            return None

        raw_sources = payload.get("sources")
        if not isinstance(raw_sources, dict) or not raw_sources:
            return None
        sources: Dict[str, SourceSpec] = {}
        for path, entry in raw_sources.items():
            sources[str(path)] = _source_from_dict(str(path), entry)

        settings = payload.get("settings")
        settings = settings if isinstance(settings, dict) else {}
        target = settings.get("compilationTarget")
        compilation_target: Dict[str, str] = {}
        if isinstance(target, dict):
            compilation_target = {
                str(key): str(value) for key, value in target.items()
            }

        return cls(
            language=payload["language"],
            compiler=payload["compiler"],
            sources=sources,
            compilation_target=compilation_target,
            settings=settings,
            raw=payload,
            origin=origin,
        )


def is_metadata(payload: object) -> bool:
    """Return True when ``payload`` looks like Solidity compiler metadata."""
    if not isinstance(payload, dict):
        return False
    return payload.get("language") == SOLIDITY_LANGUAGE and bool(payload.get("compiler"))


def _source_from_dict(path: str, entry: object) -> SourceSpec:
    """Build a ``SourceSpec``; an entry without a usable hash keeps an empty one."""
    if not isinstance(entry, dict):
        return SourceSpec(path=path, keccak256="")
    declared = entry.get("keccak256")
    content = entry.get("content")
    urls = entry.get("urls")
    return SourceSpec(
        path=path,
        keccak256=normalize_hash(declared) if isinstance(declared, str) and declared.strip() else "",
        content=content if isinstance(content, str) else None,
        urls=[url for url in urls if isinstance(url, str)] if isinstance(urls, list) else None,
    )


@dataclass(frozen=True)
class Found:
    """Content whose keccak-256 equals the declared hash."""

    content: str


@dataclass(frozen=True)
class Invalid:
    """Inline content that contradicts the declared hash."""

    reason: str


@dataclass(frozen=True)
class Missing:
    """Declared source that could not be confirmed."""

    keccak256: str
    urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {"keccak256": self.keccak256, "urls": list(self.urls)}


SourceClassification = Union[Found, Invalid, Missing]


@dataclass
class ReconciliationResult:
    """Per-source outcome of reconciling one metadata document."""

    classifications: Dict[str, SourceClassification] = field(default_factory=dict)

    @property
    def found(self) -> Dict[str, str]:
        return {
            path: outcome.content
            for path, outcome in self.classifications.items()
            if isinstance(outcome, Found)
        }

    @property
    def missing(self) -> Dict[str, Missing]:
        return {
            path: outcome
            for path, outcome in self.classifications.items()
            if isinstance(outcome, Missing)
        }

    @property
    def invalid(self) -> Dict[str, str]:
        return {
            path: outcome.reason
            for path, outcome in self.classifications.items()
            if isinstance(outcome, Invalid)
        }


def classification_counts(result: ReconciliationResult) -> Mapping[str, int]:
    return {
        "found": len(result.found),
        "missing": len(result.missing),
        "invalid": len(result.invalid),
    }
