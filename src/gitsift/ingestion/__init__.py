"""
Repository acquisition package.

Clones remote repositories into ephemeral directories or opens local ones
before their history is walked.
"""
from .acquisition import RepositoryAcquirer, RepositorySpec

__all__ = ["RepositoryAcquirer", "RepositorySpec"]
