"""Path filtering for the history walk and the working-tree scan."""
from __future__ import annotations

from fnmatch import fnmatch
from typing import Iterable, Sequence


def _matches(path: str, patterns: Sequence[str]) -> bool:
    name = path.rsplit("/", 1)[-1]
    return any(fnmatch(path, pattern) or fnmatch(name, pattern) for pattern in patterns)


class PathFilter:
    """Glob based include/exclude predicate over repository-relative paths.

    An empty include list admits every path. Exclusions win over inclusions.
    Patterns are tried against the full path and against its final component.
    """

    def __init__(
        self,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
    ) -> None:
        self.include = tuple(p.strip() for p in include if p.strip())
        self.exclude = tuple(p.strip() for p in exclude if p.strip())

    def __call__(self, path: str) -> bool:
        return self.passes(path)

    def passes(self, path: str) -> bool:
        if self.exclude and _matches(path, self.exclude):
            return False
        if self.include:
            return _matches(path, self.include)
        return True

    def __repr__(self) -> str:
        return f"PathFilter(include={list(self.include)!r}, exclude={list(self.exclude)!r})"
