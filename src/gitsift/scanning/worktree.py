"""
Working-tree scanner.

Emits the full current content of every modified or untracked file. Files
that vanish or cannot be read while the scan runs are skipped.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterator, Optional

from structlog.stdlib import BoundLogger

from ..logger import get_logger
from ..models import UNSTAGED, Chunk, MetadataFactory, ScanOptions, SourceType, build_metadata
from ..vcs import HistoryProvider, RepositoryHandle, safe_remote_url


class WorkingTreeScanner:
    def __init__(
        self,
        provider: HistoryProvider,
        source_name: str = "",
        source_id: int = 0,
        source_type: SourceType = SourceType.GIT,
        verify: bool = False,
        metadata_factory: MetadataFactory = build_metadata,
        logger: Optional[BoundLogger] = None,
    ) -> None:
        self.provider = provider
        self.source_name = source_name
        self.source_id = source_id
        self.source_type = source_type
        self.verify = verify
        self.metadata_factory = metadata_factory
        self.log = logger or get_logger(__name__)

    def scan(self, handle: RepositoryHandle, options: ScanOptions) -> Iterator[Chunk]:
        # raises for a broken HEAD; an unborn HEAD is fine
        self.provider.head(handle.repo)

        repository: Optional[str] = None
        for path in self.provider.worktree_status(handle.repo):
            if not options.path_filter(path):
                continue
            try:
                data = self.provider.read_worktree_file(handle.repo, path)
            except OSError as exc:
                self.log.debug("worktree_file_skipped", repo=handle.label, file=path, error=str(exc))
                continue
            if repository is None:
                repository = safe_remote_url(self.provider, handle.repo)
            metadata = self.metadata_factory(
                path, UNSTAGED, UNSTAGED, str(datetime.now()), repository, 0
            )
            yield Chunk(
                source_name=self.source_name,
                source_id=self.source_id,
                source_type=self.source_type,
                data=data,
                metadata=metadata,
                verify=self.verify,
            )
