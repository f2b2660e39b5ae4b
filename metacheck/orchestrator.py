"""Batch entry points: flatten, partition, index and reconcile."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from .archive import ArchiveError, ArchiveExpander
from .config import FetchConfig, MetacheckConfig
from .contract import CheckedContract
from .fetch import RemoteFetcher
from .logging import get_logger
from .metadata import MetadataScanner
from .models import CandidateFile, classification_counts
from .path_scanner import PathScanner
from .reconciler import Reconciler
from .stores import ContentHashIndex


class Orchestrator:
    """Checks batches of files against the metadata documents they contain."""

    def __init__(
        self,
        *,
        fetch: bool = True,
        fetcher: RemoteFetcher | None = None,
        expander: ArchiveExpander | None = None,
        scanner: MetadataScanner | None = None,
        path_scanner: PathScanner | None = None,
    ) -> None:
        self.fetch = fetch
        self.fetcher = fetcher or RemoteFetcher()
        self.expander = expander or ArchiveExpander()
        self.scanner = scanner or MetadataScanner()
        self.path_scanner = path_scanner or PathScanner()
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(cls, config: MetacheckConfig) -> "Orchestrator":
        fetch_config: FetchConfig = config.fetch
        return cls(
            fetch=fetch_config.enabled,
            fetcher=RemoteFetcher(
                ipfs_gateway=fetch_config.ipfs_gateway,
                request_timeout=fetch_config.request_timeout,
            ),
            path_scanner=PathScanner(config.exclude_paths),
        )

    def check_paths(
        self, paths: Sequence[str | Path], ignoring: Optional[List[str]] = None
    ) -> List[CheckedContract]:
        """Check every file found under ``paths``.

        Raises:
            FileNotFoundError: for a nonexistent path when ``ignoring`` is None.
            NoMetadataFoundError: if none of the files holds metadata.
        """
        files = self.path_scanner.collect(paths, ignoring)
        return self.check_files(files)

    def check_files(self, files: Sequence[CandidateFile]) -> List[CheckedContract]:
        """Check an in-memory batch, which may include zip archives.

        Raises:
            NoMetadataFoundError: if none of the files holds metadata.
        """
        inputs = self._expand_archives(files)
        scan = self.scanner.scan(inputs)
        batch_index = ContentHashIndex.build(scan.sources)
        self.logger.debug("Indexed %d distinct contents", len(batch_index))

        reconciler = Reconciler(self.fetcher if self.fetch else None)
        contracts: List[CheckedContract] = []
        problems: List[str] = []
        for metadata in scan.metadata:
            result = reconciler.reconcile(metadata, batch_index.copy())
            contract = CheckedContract.from_result(metadata, result)
            self.logger.debug(
                "Reconciled %s: %s", contract.compiled_path or metadata.origin, classification_counts(result)
            )
            contracts.append(contract)
            if not contract.is_valid():
                problems.append(contract.info)

        if problems:
            self.logger.warning("\n".join(problems))

        return contracts

    def _expand_archives(self, files: Sequence[CandidateFile]) -> List[CandidateFile]:
        inputs: List[CandidateFile] = []
        for file in files:
            if not self.expander.is_archive(file.content):
                inputs.append(file)
                continue
            try:
                inputs.extend(self.expander.expand(file))
            except ArchiveError as exc:
                self.logger.warning("%s; treating it as a regular file", exc)
                inputs.append(file)
        return inputs


__all__ = ["Orchestrator"]
