from __future__ import annotations

from collections import deque
from functools import lru_cache
from threading import Lock
from typing import Deque, Optional

from models.telemetry import TelemetrySample
from services.errors import EmptyBufferError
from settings import get_settings


class HistoryBuffer:
    """Bounded, insertion-ordered store of recent samples with FIFO eviction."""

    def __init__(self, capacity: int) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"History capacity must be a positive integer, got {capacity!r}.")
        self._capacity = capacity
        # deque(maxlen=...) drops the head inside the same append call.
        self._samples: Deque[TelemetrySample] = deque(maxlen=capacity)
        self._lock = Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def append(self, sample: TelemetrySample) -> int:
        """Add ``sample`` as the newest entry and return the resulting length."""

        with self._lock:
            self._samples.append(sample)
            return len(self._samples)

    def latest(self) -> TelemetrySample:
        with self._lock:
            if not self._samples:
                raise EmptyBufferError("No telemetry data available")
            return self._samples[-1]

    def windowed(self, limit: int) -> list[TelemetrySample]:
        """Return the most recent ``limit`` samples, oldest first.

        The returned list is a snapshot; later appends do not affect it.
        Limits above the capacity are clamped.
        """

        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"Window limit must be a positive integer, got {limit!r}.")
        with self._lock:
            size = min(limit, self._capacity, len(self._samples))
            if size == len(self._samples):
                return list(self._samples)
            return list(self._samples)[-size:]


@lru_cache
def build_default_buffer(capacity: Optional[int] = None) -> HistoryBuffer:
    settings = get_settings()
    size = settings.history_capacity if capacity is None else capacity
    return HistoryBuffer(capacity=size)
