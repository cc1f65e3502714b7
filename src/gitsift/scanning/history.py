"""
Commit history walker.

Walks a repository's log newest first and turns the added lines of every
hunk into a :class:`~gitsift.models.Chunk` tagged with commit provenance.
"""
from __future__ import annotations

import threading
from typing import Iterator, Optional

from structlog.stdlib import BoundLogger

from ..errors import ScanCancelledError
from ..logger import get_logger
from ..models import (
    Chunk,
    CommitRecord,
    MetadataFactory,
    ScanOptions,
    SourceType,
    build_metadata,
    join_added_lines,
)
from ..vcs import HistoryProvider, RepositoryHandle, safe_remote_url


class CommitHistoryWalker:
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

    def walk(
        self,
        handle: RepositoryHandle,
        options: ScanOptions,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[Chunk]:
        """Yield one chunk per hunk that adds at least one line.

        Every visited commit counts toward ``options.max_depth``, including
        commits whose files are all filtered out.
        """
        commits = self.provider.iter_commits(handle.repo, options.start_revision)
        repository: Optional[str] = None
        depth = 0
        try:
            for commit in commits:
                if cancel is not None and cancel.is_set():
                    raise ScanCancelledError(f"history walk of {handle.label} cancelled")
                if options.max_depth > 0 and depth >= options.max_depth:
                    self.log.debug("reached_max_depth", repo=handle.label, depth=depth)
                    break
                depth += 1
                if options.base_revision and commit.sha == options.base_revision:
                    self.log.debug("reached_base_commit", repo=handle.label, sha=commit.sha)
                    break
                if repository is None and self._has_candidates(commit, options):
                    repository = safe_remote_url(self.provider, handle.repo)
                if repository is not None:
                    yield from self._commit_chunks(commit, options, repository)
        finally:
            close = getattr(commits, "close", None)
            if close is not None:
                close()

    @staticmethod
    def _has_candidates(commit: CommitRecord, options: ScanOptions) -> bool:
        return any(diff.path and options.path_filter(diff.path) for diff in commit.changed_files)

    def _commit_chunks(self, commit: CommitRecord, options: ScanOptions, repository: str) -> Iterator[Chunk]:
        when = str(commit.author_date) if commit.author_date is not None else ""
        for file_diff in commit.changed_files:
            if not options.path_filter(file_diff.path):
                continue
            if not file_diff.path:
                continue
            for fragment in file_diff.fragments:
                added = fragment.added_lines()
                if not added:
                    continue
                metadata = self.metadata_factory(
                    file_diff.path,
                    commit.author_email,
                    commit.sha,
                    when,
                    repository,
                    fragment.start_line_in_new_file,
                )
                yield Chunk(
                    source_name=self.source_name,
                    source_id=self.source_id,
                    source_type=self.source_type,
                    data=join_added_lines(added),
                    metadata=metadata,
                    verify=self.verify,
                )
