"""
Bounded, ordered log of detection events.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Tuple

from models.event import DetectionEvent


class EventLog:
    """
    FIFO event buffer; once full, the oldest entries are evicted first.

    Entries are kept oldest first, most recent last.
    """

    def __init__(self, capacity: int = 50):
        if capacity <= 0:
            raise ValueError("event log capacity must be positive")
        self._events: Deque[DetectionEvent] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._events.maxlen

    def append(self, event: DetectionEvent) -> None:
        self._events.append(event)

    def extend(self, events: Iterable[DetectionEvent]) -> None:
        self._events.extend(events)

    def snapshot(self) -> Tuple[DetectionEvent, ...]:
        return tuple(self._events)

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
