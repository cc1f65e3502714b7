"""
Per-repository scan orchestration.

History is walked first, then the working tree. Chunks are pushed onto a
caller supplied queue; a bounded queue makes producers wait for the consumer.
"""
from __future__ import annotations

import queue
import threading
import time
from typing import Iterable, Optional

from structlog.stdlib import BoundLogger

from ..errors import ScanCancelledError
from ..logger import get_logger
from ..models import Chunk, ScanOptions, SourceType
from ..vcs import GitPythonHistoryProvider, HistoryProvider, RepositoryHandle
from .history import CommitHistoryWalker
from .worktree import WorkingTreeScanner

KNOWN_DEFECT_MARKER = "object not found"


def is_known_defect(exc: BaseException) -> bool:
    """Dangling references in malformed repositories surface as missing objects."""
    return bool(getattr(exc, "known_issue", False)) or KNOWN_DEFECT_MARKER in str(exc)


class GitScanner:
    """Runs the history walk and the working-tree scan for one repository at a time."""

    def __init__(
        self,
        provider: Optional[HistoryProvider] = None,
        source_name: str = "",
        source_id: int = 0,
        source_type: SourceType = SourceType.GIT,
        verify: bool = False,
        logger: Optional[BoundLogger] = None,
        put_timeout: float = 0.2,
    ) -> None:
        self.provider = provider or GitPythonHistoryProvider()
        self.log = logger or get_logger(__name__)
        self.put_timeout = put_timeout
        common = dict(
            source_name=source_name,
            source_id=source_id,
            source_type=source_type,
            verify=verify,
            logger=self.log,
        )
        self.walker = CommitHistoryWalker(self.provider, **common)
        self.worktree = WorkingTreeScanner(self.provider, **common)

    def _push(self, sink: "queue.Queue[Chunk]", chunk: Chunk, cancel: Optional[threading.Event]) -> None:
        if cancel is None:
            sink.put(chunk)
            return
        while True:
            if cancel.is_set():
                raise ScanCancelledError("cancelled while waiting for the chunk consumer")
            try:
                sink.put(chunk, timeout=self.put_timeout)
                return
            except queue.Full:
                continue

    def _drain(
        self,
        chunks: Iterable[Chunk],
        sink: "queue.Queue[Chunk]",
        cancel: Optional[threading.Event],
    ) -> int:
        count = 0
        for chunk in chunks:
            self._push(sink, chunk, cancel)
            count += 1
        return count

    def scan_commits(
        self,
        handle: RepositoryHandle,
        options: ScanOptions,
        sink: "queue.Queue[Chunk]",
        cancel: Optional[threading.Event] = None,
    ) -> int:
        return self._drain(self.walker.walk(handle, options, cancel), sink, cancel)

    def scan_unstaged(
        self,
        handle: RepositoryHandle,
        options: ScanOptions,
        sink: "queue.Queue[Chunk]",
        cancel: Optional[threading.Event] = None,
    ) -> int:
        return self._drain(self.worktree.scan(handle, options), sink, cancel)

    def scan_repo(
        self,
        handle: RepositoryHandle,
        options: ScanOptions,
        sink: "queue.Queue[Chunk]",
        cancel: Optional[threading.Event] = None,
    ) -> int:
        """Scan history then working tree; returns the number of chunks emitted."""
        start = time.perf_counter()
        emitted = self.scan_commits(handle, options, sink, cancel)
        try:
            emitted += self.scan_unstaged(handle, options, sink, cancel)
        except Exception as exc:
            if is_known_defect(exc):
                self.log.error(
                    "known_issue_dangling_reference",
                    repo=handle.label,
                    error=str(exc),
                    known_issue=True,
                )
            raise
        self.log.debug(
            "scan_complete",
            repo=handle.label,
            chunks=emitted,
            seconds=round(time.perf_counter() - start, 3),
        )
        return emitted
