"""
Cloning through the git executable.

The clone runs as a child process that is polled so a cancellation request
can terminate it between polls.
"""
from __future__ import annotations

import shutil
import threading
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import unquote, urlsplit

from git import Git
from git.exc import GitCommandError, GitCommandNotFound

from ..errors import CloneFailedError, GitBinaryMissingError, ScanCancelledError
from ..logger import get_logger
from .urls import strip_password

log = get_logger(__name__)


def git_cmd_check() -> str:
    """Return the path of the git executable or raise ``GitBinaryMissingError``."""
    git_path = shutil.which("git")
    if git_path is None:
        raise GitBinaryMissingError(
            "'git' command not found in $PATH. Make sure git is installed and included in $PATH"
        )
    return git_path


def _scrub(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text


def _url_secrets(url: str) -> list[str]:
    try:
        parts = urlsplit(url)
    except ValueError:
        return []
    found = [parts.password or ""]
    if parts.password:
        found.append(unquote(parts.password))
    return found


class GitCloneExecutor:
    """Run ``git clone`` once; retries are the caller's concern."""

    def __init__(self, poll_interval: float = 0.2) -> None:
        self.poll_interval = poll_interval

    def clone(
        self,
        url: str,
        destination: Path,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        safe_url = strip_password(url)
        log.debug("git_clone_started", url=safe_url, destination=str(destination))
        try:
            proc = Git().clone(
                "--quiet",
                url,
                str(destination),
                as_process=True,
                env={"GIT_TERMINAL_PROMPT": "0"},
            )
        except GitCommandNotFound as exc:
            raise GitBinaryMissingError(str(exc)) from exc

        popen = proc.proc
        if cancel is None:
            popen.wait()
        while popen.poll() is None:
            if cancel.is_set():
                popen.terminate()
                popen.wait()
                log.info("git_clone_cancelled", url=safe_url)
                raise ScanCancelledError(f"clone of {safe_url} cancelled")
            cancel.wait(self.poll_interval)

        try:
            proc.wait()
        except GitCommandError as exc:
            detail = _scrub(str(exc.stderr or "").strip(), _url_secrets(url))
            # chained exception would carry the credential-bearing command line
            raise CloneFailedError(f"error running 'git clone' for {safe_url}: {detail}") from None
        log.debug("git_clone_finished", url=safe_url)
