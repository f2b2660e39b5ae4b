"""Archive sniffing and single-level expansion into candidate files."""

from __future__ import annotations

import io
import os
import tempfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import List

from .logging import get_logger
from .models import CandidateFile

WORK_AREA_PREFIX = "metacheck-unzipped-"


class ArchiveError(RuntimeError):
    """Raised when a blob sniffed as an archive cannot be expanded."""


class ArchiveExpander:
    """Expands zip archives through a scoped temporary work area.

    Each ``expand`` call owns a fresh directory created by ``tempfile`` and
    removes it before returning, whether extraction succeeds or not. Callers
    sharing a custom ``work_root`` across threads must serialise themselves.
    """

    def __init__(self, work_root: Path | None = None) -> None:
        self.work_root = work_root
        self.logger = get_logger("archive")

    @staticmethod
    def is_archive(content: bytes) -> bool:
        """Return True when ``content`` is a zip archive, judged by its bytes."""
        try:
            return zipfile.is_zipfile(io.BytesIO(content))
        except OSError:
            return False

    def expand(self, archive: CandidateFile) -> List[CandidateFile]:
        """Return the regular files inside ``archive``, tagged with its path.

        Entries are not expanded further, even when they are archives.
        """
        work_root = str(self.work_root) if self.work_root is not None else None
        with tempfile.TemporaryDirectory(prefix=WORK_AREA_PREFIX, dir=work_root) as work_dir:
            self.logger.debug("Expanding %s into %s", archive.path or "<memory>", work_dir)
            try:
                self._extract(archive, Path(work_dir))
            except (
                zipfile.BadZipFile,
                zipfile.LargeZipFile,
                zlib.error,
                NotImplementedError,
                RuntimeError,
                OSError,
                EOFError,
            ) as exc:
                raise ArchiveError(
                    f"Failed to expand archive {archive.path or '<memory>'}: {exc}"
                ) from exc
            return self._collect(Path(work_dir), archive.path)

    def _extract(self, archive: CandidateFile, destination: Path) -> None:
        with zipfile.ZipFile(io.BytesIO(archive.content)) as bundle:
            for member in bundle.infolist():
                if member.is_dir():
                    continue
                if not _is_safe_member(member.filename):
                    self.logger.warning(
                        "Skipping unsafe archive entry %s in %s",
                        member.filename,
                        archive.path or "<memory>",
                    )
                    continue
                bundle.extract(member, destination)

    @staticmethod
    def _collect(work_dir: Path, origin: str | None) -> List[CandidateFile]:
        files: List[CandidateFile] = []
        for dirpath, dirnames, filenames in os.walk(work_dir):
            dirnames.sort()
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                files.append(CandidateFile(content=path.read_bytes(), path=origin))
        return files


def _is_safe_member(member_name: str) -> bool:
    relative = PurePosixPath(member_name.replace("\\", "/"))
    if relative.is_absolute() or not relative.parts:
        return False
    return not any(part in {"", ".", ".."} for part in relative.parts)


__all__ = ["ArchiveError", "ArchiveExpander"]
