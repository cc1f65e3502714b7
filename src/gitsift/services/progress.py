"""
Progress reporting for multi-repository scans.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol


class ProgressReporter(Protocol):
    def set_progress_complete(self, index: int, total: int, message: str, resume_info: str = "") -> None:
        ...


@dataclass
class ProgressSnapshot:
    percent_complete: int = 0
    message: str = ""
    resume_info: str = ""
    sections_completed: int = 0
    sections_remaining: int = 0


@dataclass
class Progress:
    """Thread-safe position tracker, optionally forwarding updates to a callback."""

    on_update: Optional[Callable[[ProgressSnapshot], None]] = None
    history: List[ProgressSnapshot] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _current: ProgressSnapshot = field(default_factory=ProgressSnapshot, repr=False)

    def set_progress_complete(self, index: int, total: int, message: str, resume_info: str = "") -> None:
        percent = int(index * 100 / total) if total else 100
        snapshot = ProgressSnapshot(
            percent_complete=percent,
            message=message,
            resume_info=resume_info,
            sections_completed=index,
            sections_remaining=max(total - index, 0),
        )
        with self._lock:
            self._current = snapshot
            self.history.append(snapshot)
        if self.on_update is not None:
            self.on_update(snapshot)

    @property
    def current(self) -> ProgressSnapshot:
        with self._lock:
            return self._current
