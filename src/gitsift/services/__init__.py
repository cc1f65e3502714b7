"""
Service layer: the multi-repository git source and its collaborators.
"""
from .connection import BasicAuth, GitConnection, Unauthenticated
from .progress import Progress, ProgressReporter, ProgressSnapshot
from .source import GitSource, RepositoryFailure, ScanReport

__all__ = [
    "BasicAuth",
    "GitConnection",
    "GitSource",
    "Progress",
    "ProgressReporter",
    "ProgressSnapshot",
    "RepositoryFailure",
    "ScanReport",
    "Unauthenticated",
]
