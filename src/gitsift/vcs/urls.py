"""
Remote URL helpers: credential stripping, credential embedding and links.
"""
from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from ..errors import InvalidURLError, RemoteResolutionError
from .base import HistoryProvider

# scp-like syntax: user@host:path, never carries a password
_SCP_LIKE = re.compile(r"^[A-Za-z0-9._~-]+@[^/:]+:(?!//)")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _split(url: str):
    if _CONTROL_CHARS.search(url):
        raise InvalidURLError("repo remote cannot be sanitized as URI: invalid control character in URL")
    try:
        parts = urlsplit(url)
        parts.port  # validates the port component
    except ValueError as exc:
        raise InvalidURLError(f"repo remote cannot be sanitized as URI: {exc}") from exc
    return parts


def strip_password(url: str) -> str:
    """Return ``url`` without its user-info component."""
    if _SCP_LIKE.match(url):
        return url
    parts = _split(url)
    host = parts.netloc.rpartition("@")[2]
    return urlunsplit(parts._replace(netloc=host))


def embed_credentials(url: str, username: Optional[str], password: Optional[str]) -> str:
    """Return a clone URL carrying ``username``/``password`` as user-info.

    Without a username any user-info already present is dropped.
    """
    parts = _split(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        if username:
            raise InvalidURLError("credentials can only be embedded in http(s) URLs")
        return url
    host = parts.netloc.rpartition("@")[2]
    if username:
        userinfo = quote(username, safe="")
        if password:
            userinfo += ":" + quote(password, safe="")
        host = f"{userinfo}@{host}"
    return urlunsplit(parts._replace(netloc=host))


def safe_remote_url(provider: HistoryProvider, repo: Any, name: str = "origin") -> str:
    """Resolve a remote and strip its credentials, for chunk provenance."""
    url = provider.remote_url(repo, name)
    try:
        return strip_password(url)
    except InvalidURLError as exc:
        raise RemoteResolutionError("couldn't get repo name") from exc


def generate_link(repo: str, commit: str, file: str = "") -> str:
    """Craft a link to ``file`` at ``commit``; works for GitHub and GitLab style hosts."""
    base = repo[:-4] if repo.endswith(".git") else repo
    if "bitbucket.org/" in repo:
        return f"{base}/commits/{commit}"
    if not file:
        return f"{base}/commit/{commit}"
    return f"{base}/blob/{commit}/{file}"
