"""Aggregated verification input for one compiled contract."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict

from .models import MetadataDocument, Missing, ReconciliationResult


@dataclass(frozen=True)
class CheckedContract:
    """A metadata document bundled with the outcome of its reconciliation.

    ``compiled_path`` and ``name`` come from the first compilation-target
    entry in declared order; documents without one get empty strings.
    """

    metadata: MetadataDocument
    found: Dict[str, str] = field(default_factory=dict)
    missing: Dict[str, Missing] = field(default_factory=dict)
    invalid: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_result(
        cls, metadata: MetadataDocument, result: ReconciliationResult
    ) -> "CheckedContract":
        return cls(
            metadata=metadata,
            found=result.found,
            missing=result.missing,
            invalid=result.invalid,
        )

    @property
    def compiled_path(self) -> str:
        for path in self.metadata.compilation_target:
            return path
        return ""

    @property
    def name(self) -> str:
        return self.metadata.compilation_target.get(self.compiled_path, "")

    @property
    def compiler_version(self) -> str:
        return self.metadata.compiler_version

    def is_valid(self) -> bool:
        return not self.missing and not self.invalid

    @property
    def info(self) -> str:
        """Human-readable summary, listing problems for invalid contracts."""
        lines = [f"{self.compiled_path}:{self.name}"]
        if self.missing:
            lines[0] += f" ({len(self.missing)} missing)"
            for path, entry in self.missing.items():
                lines.append(f"  missing {path} keccak256={entry.keccak256}")
                if entry.urls:
                    lines.append(f"    urls: {', '.join(entry.urls)}")
        if self.invalid:
            lines[0] += f" ({len(self.invalid)} invalid)"
            for path, reason in self.invalid.items():
                lines.append(f"  invalid {path}: {reason}")
        return "\n".join(lines)

    def solc_json_input(self) -> Dict[str, Any]:
        """Return standard-JSON compiler input rebuilt from the found sources."""
        settings = copy.deepcopy(self.metadata.settings)
        settings.pop("compilationTarget", None)
        libraries = settings.get("libraries")
        if isinstance(libraries, dict):
            settings["libraries"] = _nest_libraries(libraries)
        settings["outputSelection"] = {
            self.compiled_path or "*": {self.name or "*": ["abi", "evm.bytecode", "evm.deployedBytecode"]}
        }
        return {
            "language": self.metadata.language,
            "sources": {path: {"content": content} for path, content in self.found.items()},
            "settings": settings,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "compiledPath": self.compiled_path,
            "compilerVersion": self.compiler_version,
            "valid": self.is_valid(),
            "found": dict(self.found),
            "missing": {path: entry.to_dict() for path, entry in self.missing.items()},
            "invalid": dict(self.invalid),
        }


def _nest_libraries(libraries: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    # Metadata uses "path:Name" keys; compiler input wants {path: {Name: address}}.
    nested: Dict[str, Dict[str, Any]] = {}
    for key, address in libraries.items():
        if isinstance(address, dict):
            nested.setdefault(key, {}).update(address)
            continue
        file_name, _, library = key.rpartition(":")
        nested.setdefault(file_name, {})[library] = address
    return nested
