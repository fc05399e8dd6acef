"""Bounded in-memory log of handler executions.

Provides storage that automatically evicts the oldest events when the log
is full, so memory use stays predictable however many triggers fire.
"""

import threading
from collections import deque
from collections.abc import Iterable

from sensorhook.core.models import Event

DEFAULT_MAX_EVENTS = 250


class EventLog:
    """Ring buffer of the most recent trigger executions.

    Args:
        max_size: Maximum number of events to keep.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_EVENTS) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._buffer: deque[Event] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._buffer.maxlen or 0

    def append(self, event: Event) -> None:
        """Add an event, dropping the oldest one when the log is full."""
        with self._lock:
            self._buffer.append(event)

    def extend(self, events: Iterable[Event]) -> None:
        """Append several events in order."""
        with self._lock:
            self._buffer.extend(events)

    def all(self) -> list[Event]:
        """Return all events, oldest first."""
        with self._lock:
            return list(self._buffer)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
