"""Counting admission gate for concurrent repository scans."""
from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from ..errors import ScanCancelledError


class ConcurrencyLimiter:
    """Bounds how many repositories are processed at the same time."""

    def __init__(self, capacity: Optional[int] = None, poll_interval: float = 0.2) -> None:
        self.capacity = capacity or os.cpu_count() or 1
        if self.capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.poll_interval = poll_interval
        self._semaphore = threading.BoundedSemaphore(self.capacity)
        self._lock = threading.Lock()
        self._active = 0

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    def acquire(self, cancel: Optional[threading.Event] = None) -> None:
        if cancel is None:
            self._semaphore.acquire()
        else:
            while not self._semaphore.acquire(timeout=self.poll_interval):
                if cancel.is_set():
                    raise ScanCancelledError("cancelled while waiting for a scan slot")
        with self._lock:
            self._active += 1

    def release(self) -> None:
        with self._lock:
            self._active -= 1
        self._semaphore.release()

    @contextmanager
    def slot(self, cancel: Optional[threading.Event] = None) -> Iterator[None]:
        """Hold one unit of capacity for the duration of the block."""
        self.acquire(cancel)
        try:
            yield
        finally:
            self.release()
