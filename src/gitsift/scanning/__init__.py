"""
Content extraction: history walk, working-tree scan and their orchestration.
"""
from .history import CommitHistoryWalker
from .limiter import ConcurrencyLimiter
from .scanner import GitScanner, is_known_defect
from .worktree import WorkingTreeScanner

__all__ = [
    "CommitHistoryWalker",
    "ConcurrencyLimiter",
    "GitScanner",
    "WorkingTreeScanner",
    "is_known_defect",
]
