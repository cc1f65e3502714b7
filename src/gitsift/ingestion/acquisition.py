"""
Repository acquisition.

Remote repositories are cloned into a uniquely named directory under the
clone temp root; local repositories are opened in place. Ephemeral clones
belong to the acquirer and are removed by :meth:`RepositoryAcquirer.release`
or on leaving :meth:`RepositoryAcquirer.acquired`.
"""
from __future__ import annotations

import shutil
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union
from urllib.parse import unquote, urlsplit

from ..errors import (
    ConfigurationError,
    InvalidURLError,
    MissingCredentialError,
    UnsupportedSchemeError,
)
from ..logger import get_logger
from ..settings import settings
from ..vcs import (
    CloneExecutor,
    GitCloneExecutor,
    GitPythonHistoryProvider,
    HistoryProvider,
    RepositoryHandle,
    embed_credentials,
    git_cmd_check,
    strip_password,
)

log = get_logger(__name__)


@dataclass(frozen=True)
class RepositorySpec:
    """Where a repository comes from: a remote URL or a local path."""

    remote_url: Optional[str] = None
    username: Optional[str] = None
    token: Optional[str] = None
    local_path: Optional[Path] = None

    def __post_init__(self) -> None:
        if (self.remote_url is None) == (self.local_path is None):
            raise ConfigurationError("exactly one of remote_url or local_path must be set")

    @classmethod
    def remote(cls, url: str, username: Optional[str] = None, token: Optional[str] = None) -> "RepositorySpec":
        return cls(remote_url=url, username=username, token=token)

    @classmethod
    def local(cls, path: Union[str, Path]) -> "RepositorySpec":
        return cls(local_path=Path(path))

    @property
    def label(self) -> str:
        if self.local_path is not None:
            return str(self.local_path)
        try:
            return strip_password(self.remote_url or "")
        except InvalidURLError:
            return "<invalid url>"


class RepositoryAcquirer:
    """Clones or opens repositories and owns cleanup of the clones it makes."""

    def __init__(
        self,
        provider: Optional[HistoryProvider] = None,
        clone_executor: Optional[CloneExecutor] = None,
        temp_root: Optional[Path] = None,
        prefix: Optional[str] = None,
    ) -> None:
        self.provider = provider or GitPythonHistoryProvider()
        self.clone_executor = clone_executor or GitCloneExecutor()
        self.temp_root = Path(temp_root or settings.clone_temp_root)
        self.prefix = prefix or settings.clone_prefix

    def acquire(self, spec: RepositorySpec, cancel: Optional[threading.Event] = None) -> RepositoryHandle:
        if spec.local_path is not None:
            return self.open(spec.local_path)
        return self.clone(spec.remote_url or "", spec.username, spec.token, cancel=cancel)

    def open(self, path: Union[str, Path], ephemeral: bool = False) -> RepositoryHandle:
        path = Path(path)
        repo = self.provider.open(path)
        return RepositoryHandle(path=path, repo=repo, ephemeral=ephemeral, label=str(path))

    def clone(
        self,
        url: str,
        username: Optional[str] = None,
        token: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> RepositoryHandle:
        git_cmd_check()
        safe_url = strip_password(url)
        clone_url = embed_credentials(url, username, token)

        self.temp_root.mkdir(parents=True, exist_ok=True)
        clone_path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=str(self.temp_root)))
        try:
            self.clone_executor.clone(clone_url, clone_path, cancel)
            repo = self.provider.open(clone_path)
        except BaseException:
            shutil.rmtree(clone_path, ignore_errors=True)
            raise
        log.info(
            "repository_cloned",
            url=safe_url,
            authenticated=bool(username),
            path=str(clone_path),
        )
        return RepositoryHandle(path=clone_path, repo=repo, ephemeral=True, label=safe_url)

    def release(self, handle: RepositoryHandle) -> None:
        handle.close()
        if handle.ephemeral:
            shutil.rmtree(handle.path, ignore_errors=True)
            log.debug("ephemeral_clone_removed", path=str(handle.path))

    @contextmanager
    def acquired(
        self,
        spec: RepositorySpec,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[RepositoryHandle]:
        handle = self.acquire(spec, cancel=cancel)
        try:
            yield handle
        finally:
            self.release(handle)

    def is_managed_path(self, path: Union[str, Path]) -> bool:
        """True for directories that live under the clone temp root with our prefix."""
        candidate = Path(path).resolve()
        root = self.temp_root.resolve()
        return candidate.parent == root and candidate.name.startswith(self.prefix)

    def prepare_repo(self, uri: str, cancel: Optional[threading.Event] = None) -> Tuple[Path, bool]:
        """Materialise a ``file://`` or ``https://`` URI as a local path.

        Returns the path and whether it is a fresh clone the caller must remove.
        """
        try:
            parts = urlsplit(uri)
            parts.port
        except ValueError as exc:
            raise InvalidURLError(f"unable to parse Git URI: {exc}") from exc

        if parts.scheme == "file":
            return Path(f"{parts.netloc}{parts.path}"), False
        if parts.scheme != "https":
            raise UnsupportedSchemeError(f"unsupported Git URI: {strip_password(uri)}")

        host = parts.netloc.rpartition("@")[2]
        remote_path = f"https://{host}{parts.path}"
        if parts.username:
            if parts.password is None:
                raise MissingCredentialError(
                    "password must be included in Git repo URL when username is provided"
                )
            log.debug("cloning_remote_repo", authenticated=True)
            handle = self.clone(
                remote_path,
                unquote(parts.username),
                unquote(parts.password),
                cancel=cancel,
            )
        else:
            log.debug("cloning_remote_repo", authenticated=False)
            handle = self.clone(remote_path, cancel=cancel)
        handle.close()
        log.debug("git_repo_local_path", path=str(handle.path))
        return handle.path, True
