"""
Exception hierarchy for repository acquisition and content extraction.

Messages never embed credentials: callers pass sanitized URLs only.
"""
from __future__ import annotations


class GitSiftError(Exception):
    """Base class for every error raised by gitsift."""


class ConfigurationError(GitSiftError):
    """The repository source description cannot be used as given."""


class InvalidURLError(ConfigurationError):
    pass


class MissingCredentialError(ConfigurationError):
    pass


class UnsupportedSchemeError(ConfigurationError):
    pass


class GitBinaryMissingError(GitSiftError):
    """The ``git`` executable is not reachable on ``$PATH``."""


class AcquisitionError(GitSiftError):
    """A working copy could not be cloned or opened."""


class CloneFailedError(AcquisitionError):
    pass


class OpenFailedError(AcquisitionError):
    pass


class TraversalError(GitSiftError):
    """Commit history could not be walked; aborts the repository's scan."""


class CommitLogError(TraversalError):
    pass


class RemoteResolutionError(TraversalError):
    pass


class WorkingTreeError(GitSiftError):
    """The uncommitted state of the working tree could not be inspected."""

    known_issue = False


class HeadResolutionError(WorkingTreeError):
    pass


class DanglingReferenceError(WorkingTreeError):
    """An object referenced by the repository is missing from its object store."""

    known_issue = True


class ReferenceNotFoundError(GitSiftError):
    """A single revision expression did not resolve."""


class NoBaseRefsError(GitSiftError):
    """None of the base reference prefixes resolved."""

    def __init__(self, base: str) -> None:
        super().__init__(f"no base refs succeeded for base: {base!r}")
        self.base = base


class ScanCancelledError(GitSiftError):
    """The scan was cancelled before it could complete."""
