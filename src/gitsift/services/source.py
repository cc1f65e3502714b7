"""
Git source: scans every configured repository and directory.

Each repository is handled end to end (acquire, walk history, scan working
tree, clean up) by one worker; the source's limiter bounds how many workers
are active. A failing repository is recorded and the remaining ones still run.
"""
from __future__ import annotations

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterator, List, Optional

from structlog.stdlib import BoundLogger

from ..errors import ConfigurationError, ScanCancelledError
from ..ingestion import RepositoryAcquirer, RepositorySpec
from ..logger import get_logger
from ..models import Chunk, ScanOptions, SourceType
from ..scanning import ConcurrencyLimiter, GitScanner
from ..settings import settings
from ..vcs import (
    CloneExecutor,
    GitPythonHistoryProvider,
    HistoryProvider,
    RepositoryHandle,
    resolve_base,
    strip_password,
)
from .connection import BasicAuth, GitConnection
from .progress import Progress, ProgressReporter


@dataclass
class RepositoryFailure:
    label: str
    error: BaseException


@dataclass
class ScanReport:
    total: int = 0
    scanned: int = 0
    skipped: int = 0
    chunks: int = 0
    cancelled: bool = False
    failures: List[RepositoryFailure] = field(default_factory=list)

    @property
    def first_error(self) -> Optional[BaseException]:
        return self.failures[0].error if self.failures else None

    def raise_first_error(self) -> None:
        if self.failures:
            raise self.failures[0].error


@dataclass(frozen=True)
class _Target:
    index: int
    label: str
    spec: Optional[RepositorySpec] = None
    uri: Optional[str] = None


def _safe_label(value: str) -> str:
    try:
        return strip_password(value)
    except ConfigurationError:
        return "<invalid url>"


class GitSource:
    """Feeds chunks from git repositories into a shared queue."""

    source_type = SourceType.GIT

    def __init__(
        self,
        name: str,
        connection: GitConnection,
        source_id: int = 0,
        job_id: int = 0,
        verify: Optional[bool] = None,
        concurrency: Optional[int] = None,
        provider: Optional[HistoryProvider] = None,
        clone_executor: Optional[CloneExecutor] = None,
        acquirer: Optional[RepositoryAcquirer] = None,
        progress: Optional[ProgressReporter] = None,
        logger: Optional[BoundLogger] = None,
    ) -> None:
        if connection.repositories and connection.credential is None:
            raise ConfigurationError("invalid connection type for git source")
        self.name = name
        self.connection = connection
        self.source_id = source_id
        self.job_id = job_id
        self.verify = settings.verify if verify is None else verify
        self.provider = provider or GitPythonHistoryProvider()
        self.acquirer = acquirer or RepositoryAcquirer(
            provider=self.provider, clone_executor=clone_executor
        )
        self.progress = progress or Progress()
        self.log = logger or get_logger(__name__)
        self.limiter = ConcurrencyLimiter(concurrency or settings.concurrency)
        self.scanner = GitScanner(
            provider=self.provider,
            source_name=name,
            source_id=source_id,
            source_type=self.source_type,
            verify=self.verify,
            logger=self.log,
        )

    def targets(self) -> List[_Target]:
        targets: List[_Target] = []
        credential = self.connection.credential
        for url in self.connection.repositories:
            if not url:
                continue
            if isinstance(credential, BasicAuth):
                spec = RepositorySpec.remote(url, credential.username, credential.password.get_secret_value())
            else:
                spec = RepositorySpec.remote(url)
            targets.append(_Target(index=len(targets), label=spec.label, spec=spec))
        for entry in self.connection.directories:
            if not entry:
                continue
            if "://" in entry:
                targets.append(_Target(index=len(targets), label=_safe_label(entry), uri=entry))
            else:
                spec = RepositorySpec.local(entry)
                targets.append(_Target(index=len(targets), label=spec.label, spec=spec))
        return targets

    def chunks(
        self,
        sink: "queue.Queue[Chunk]",
        options: Optional[ScanOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ScanReport:
        """Scan every target, pushing chunks to ``sink``.

        Failures are collected per repository in the returned report; use
        :meth:`ScanReport.raise_first_error` to turn them into an exception.
        """
        options = options or ScanOptions(max_depth=settings.max_depth)
        targets = self.targets()
        report = ScanReport(total=len(targets))
        if not targets:
            return report

        workers = min(self.limiter.capacity, len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gitsift") as pool:
            futures = [
                pool.submit(self._scan_target, target, len(targets), sink, options, cancel)
                for target in targets
            ]
            for target, future in zip(targets, futures):
                try:
                    emitted = future.result()
                except ScanCancelledError:
                    report.cancelled = True
                    report.skipped += 1
                    continue
                except Exception as exc:
                    report.failures.append(RepositoryFailure(label=target.label, error=exc))
                    continue
                if emitted is None:
                    report.cancelled = True
                    report.skipped += 1
                else:
                    report.scanned += 1
                    report.chunks += emitted

        self.progress.set_progress_complete(len(targets), len(targets), "Scan complete")
        self.log.info(
            "git_source_finished",
            source=self.name,
            job_id=self.job_id,
            scanned=report.scanned,
            failed=len(report.failures),
            skipped=report.skipped,
            chunks=report.chunks,
        )
        return report

    def _scan_target(
        self,
        target: _Target,
        total: int,
        sink: "queue.Queue[Chunk]",
        options: ScanOptions,
        cancel: Optional[threading.Event],
    ) -> Optional[int]:
        if cancel is not None and cancel.is_set():
            return None
        with self.limiter.slot(cancel):
            if cancel is not None and cancel.is_set():
                return None
            self.progress.set_progress_complete(target.index, total, f"Repo: {target.label}")
            self.log.info("repository_scan_started", repo=target.label, index=target.index, total=total)
            try:
                with self._acquired(target, cancel) as handle:
                    return self.scanner.scan_repo(handle, self._options_for(handle, options), sink, cancel)
            except ScanCancelledError:
                self.log.info("repository_scan_cancelled", repo=target.label)
                raise
            except Exception as exc:
                self.log.error("repository_scan_failed", repo=target.label, error=str(exc))
                raise

    @contextmanager
    def _acquired(self, target: _Target, cancel: Optional[threading.Event]) -> Iterator[RepositoryHandle]:
        if target.spec is not None and target.spec.remote_url is not None:
            with self.acquirer.acquired(target.spec, cancel=cancel) as handle:
                yield handle
            return

        if target.uri is not None:
            path, created = self.acquirer.prepare_repo(target.uri, cancel=cancel)
        else:
            path = Path(target.spec.local_path)
            created = False
        owned = created or self.acquirer.is_managed_path(path)
        try:
            handle = self.acquirer.open(path, ephemeral=owned)
        except BaseException:
            if created:
                self.acquirer.release(RepositoryHandle(path=path, repo=None, ephemeral=True))
            raise
        handle.label = target.label
        try:
            yield handle
        finally:
            self.acquirer.release(handle)

    def _options_for(self, handle: RepositoryHandle, options: ScanOptions) -> ScanOptions:
        if not options.base_revision:
            return options
        base = resolve_base(self.provider, handle.repo, options.base_revision)
        return replace(options, base_revision=base)
