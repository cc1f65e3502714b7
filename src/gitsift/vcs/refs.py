"""Resolution of a user supplied base reference into a commit sha."""
from __future__ import annotations

from typing import Any, Sequence

from ..errors import NoBaseRefsError, ReferenceNotFoundError
from .base import HistoryProvider

BASE_REF_PREFIXES: Sequence[str] = (
    "",
    "refs/heads/",
    "refs/remotes/origin/",
)


def resolve_base(provider: HistoryProvider, repo: Any, base: str) -> str:
    """Try ``base`` as given, then as a local branch, then as an origin branch.

    Only a not-found result moves on to the next prefix; any other failure
    propagates immediately.
    """
    for prefix in BASE_REF_PREFIXES:
        try:
            return provider.resolve_revision(repo, prefix + base)
        except ReferenceNotFoundError:
            continue
    raise NoBaseRefsError(base)
