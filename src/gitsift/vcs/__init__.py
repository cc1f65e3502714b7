"""
Version-control backend: capability protocols and their GitPython implementation.
"""
from .base import CloneExecutor, HistoryProvider, RepositoryHandle
from .clone import GitCloneExecutor, git_cmd_check
from .provider import GitPythonHistoryProvider
from .refs import BASE_REF_PREFIXES, resolve_base
from .urls import embed_credentials, generate_link, safe_remote_url, strip_password

__all__ = [
    "BASE_REF_PREFIXES",
    "CloneExecutor",
    "GitCloneExecutor",
    "GitPythonHistoryProvider",
    "HistoryProvider",
    "RepositoryHandle",
    "embed_credentials",
    "generate_link",
    "git_cmd_check",
    "resolve_base",
    "safe_remote_url",
    "strip_password",
]
