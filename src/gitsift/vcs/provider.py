"""
GitPython backed implementation of :class:`~gitsift.vcs.base.HistoryProvider`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional

from git import Repo
from git.exc import (
    BadName,
    BadObject,
    GitCommandError,
    GitCommandNotFound,
    InvalidGitRepositoryError,
    NoSuchPathError,
)

from ..errors import (
    CommitLogError,
    DanglingReferenceError,
    GitBinaryMissingError,
    HeadResolutionError,
    OpenFailedError,
    ReferenceNotFoundError,
    RemoteResolutionError,
    WorkingTreeError,
)
from ..logger import get_logger
from ..models import CommitRecord
from .patch import LOG_FORMAT, parse_log

log = get_logger(__name__)

_MISSING_OBJECT_MARKERS = ("object not found", "bad object", "missing object", "unable to read")


def _is_missing_object(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _MISSING_OBJECT_MARKERS)


class GitPythonHistoryProvider:
    """History and working-tree access through GitPython and the git CLI."""

    def open(self, path: Path) -> Repo:
        try:
            return Repo(str(path))
        except (InvalidGitRepositoryError, NoSuchPathError) as exc:
            raise OpenFailedError(f"could not open repo at {path}: {exc}") from exc

    def head(self, repo: Repo) -> Optional[str]:
        try:
            return repo.head.commit.hexsha
        except ValueError as exc:
            # unborn branch: HEAD names a ref that has no commit yet
            if "does not exist" in str(exc):
                return None
            raise HeadResolutionError(f"could not resolve HEAD: {exc}") from exc
        except (BadName, BadObject) as exc:
            raise HeadResolutionError(f"could not resolve HEAD: {exc}") from exc

    def iter_commits(self, repo: Repo, start_revision: Optional[str] = None) -> Iterator[CommitRecord]:
        if start_revision is None:
            try:
                head = self.head(repo)
            except HeadResolutionError as exc:
                raise CommitLogError(f"could not read commit log from HEAD: {exc}") from exc
            if head is None:
                log.debug("empty_repository_no_history", path=str(repo.working_dir))
                return
        revision = start_revision or "HEAD"
        try:
            proc = repo.git(c="core.quotepath=false").log(
                revision,
                "--patch",
                "--root",
                "--src-prefix=a/",
                "--dst-prefix=b/",
                "--unified=0",
                "--full-history",
                "--no-color",
                "--no-ext-diff",
                f"--format={LOG_FORMAT}",
                "--",
                as_process=True,
            )
        except GitCommandNotFound as exc:
            raise GitBinaryMissingError(str(exc)) from exc

        popen = proc.proc
        try:
            yield from parse_log(popen.stdout)
            try:
                proc.wait()
            except GitCommandError as exc:
                raise CommitLogError(f"could not read commit log from {revision!r}: {exc.stderr.strip()}") from exc
        finally:
            if popen.poll() is None:
                popen.kill()
                popen.wait()

    def resolve_revision(self, repo: Repo, revision: str) -> str:
        try:
            obj = repo.rev_parse(revision)
        except (BadName, BadObject) as exc:
            raise ReferenceNotFoundError(revision) from exc
        while obj.type == "tag":
            obj = obj.object
        return obj.hexsha

    def remote_url(self, repo: Repo, name: str = "origin") -> str:
        try:
            remote = repo.remote(name)
            urls = list(remote.urls)
        except (ValueError, GitCommandError) as exc:
            raise RemoteResolutionError(f"error getting repo remote {name}") from exc
        if not urls:
            raise RemoteResolutionError(f"remote {name} has no URL")
        return urls[0]

    def worktree_status(self, repo: Repo) -> List[str]:
        if repo.bare:
            return []
        try:
            output = repo.git.status("--porcelain", "-z", "--untracked-files=all")
        except GitCommandError as exc:
            message = str(exc.stderr or exc)
            if _is_missing_object(message):
                raise DanglingReferenceError(f"object not found: {message.strip()}") from exc
            raise WorkingTreeError(f"error obtaining worktree status: {message.strip()}") from exc

        paths: List[str] = []
        entries = iter(output.split("\x00"))
        for entry in entries:
            if len(entry) < 4:
                continue
            status, path = entry[:2], entry[3:]
            if "R" in status or "C" in status:
                # the rename/copy source follows as its own entry
                next(entries, None)
            paths.append(path)
        return paths

    def read_worktree_file(self, repo: Repo, path: str) -> bytes:
        return (Path(repo.working_tree_dir) / path).read_bytes()
