"""
Narrow capability interfaces over the version-control backend.

The scanning components only talk to these protocols, so the GitPython
implementation in :mod:`gitsift.vcs.provider` can be swapped for fakes in
tests or for another backend.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Protocol

from ..models import CommitRecord


@dataclass
class RepositoryHandle:
    """An opened repository plus the directory it lives in.

    ``ephemeral`` marks a clone that the acquirer created and must delete.
    ``label`` is a credential-free description used in logs and progress.
    """

    path: Path
    repo: Any
    ephemeral: bool = False
    label: str = ""

    def close(self) -> None:
        closer = getattr(self.repo, "close", None)
        if closer is not None:
            closer()


class HistoryProvider(Protocol):
    """Read access to a repository's history and working tree."""

    def open(self, path: Path) -> Any:
        ...

    def iter_commits(self, repo: Any, start_revision: Optional[str] = None) -> Iterator[CommitRecord]:
        """Yield commits newest first, each with its added/removed hunks."""
        ...

    def resolve_revision(self, repo: Any, revision: str) -> str:
        """Return the commit sha for ``revision`` or raise ``ReferenceNotFoundError``."""
        ...

    def remote_url(self, repo: Any, name: str = "origin") -> str:
        ...

    def head(self, repo: Any) -> Optional[str]:
        """Return the HEAD commit sha, or ``None`` for a repository without commits."""
        ...

    def worktree_status(self, repo: Any) -> Iterable[str]:
        """Paths that differ between HEAD, the index and the working tree."""
        ...

    def read_worktree_file(self, repo: Any, path: str) -> bytes:
        ...


class CloneExecutor(Protocol):
    def clone(
        self,
        url: str,
        destination: Path,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        ...
