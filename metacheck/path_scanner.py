"""Collection of candidate files from filesystem paths."""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from .logging import get_logger
from .models import CandidateFile

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}


def _matches_any(rel_path: str, patterns: Sequence[str], is_dir: bool) -> bool:
    for pattern in patterns:
        directory_only = pattern.endswith("/")
        cleaned = pattern.rstrip("/")
        if not cleaned or (directory_only and not is_dir):
            continue
        if "/" in cleaned:
            if fnmatchcase(rel_path, cleaned.lstrip("/")):
                return True
            continue
        if any(fnmatchcase(part, cleaned) for part in rel_path.split("/")):
            return True
    return False


def _iter_files(root: Path, exclude_paths: Sequence[str]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _matches_any(rel_path, exclude_paths, True):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES:
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _matches_any(rel_path, exclude_paths, False):
                continue
            yield current_dir / filename


class PathScanner:
    """Reads files and directory trees into candidate files."""

    def __init__(self, exclude_paths: Sequence[str] | None = None) -> None:
        self.exclude_paths = list(exclude_paths or [])
        self.logger = get_logger("path_scanner")

    def collect(
        self, paths: Sequence[str | Path], ignoring: Optional[List[str]] = None
    ) -> List[CandidateFile]:
        """Return every readable file under ``paths``.

        Nonexistent paths are appended to ``ignoring`` when a list is given;
        otherwise they raise FileNotFoundError.
        """
        files: List[CandidateFile] = []
        for raw_path in paths:
            path = Path(raw_path).expanduser()
            if not path.exists():
                if ignoring is None:
                    message = f"Encountered a nonexistent path: {raw_path}"
                    self.logger.error(message)
                    raise FileNotFoundError(message)
                self.logger.warning("Ignoring nonexistent path %s", raw_path)
                ignoring.append(str(raw_path))
                continue

            if path.is_dir():
                for file_path in _iter_files(path, self.exclude_paths):
                    files.append(self._read(file_path))
            elif path.is_file():
                files.append(self._read(path))
        return files

    @staticmethod
    def _read(path: Path) -> CandidateFile:
        return CandidateFile(content=path.read_bytes(), path=str(path.resolve()))


__all__ = ["PathScanner"]
