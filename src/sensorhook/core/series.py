"""Keyed sliding-window storage of readings.

Every key holds a bounded FIFO of numeric samples or the last text value.
All access goes through a single lock so that concurrent request handlers
always observe a consistent window.
"""

import logging
import math
import sys
import threading
import time
from collections.abc import Callable, Iterator, Mapping

from sensorhook.core.exceptions import InvalidInputError, NotFoundError
from sensorhook.core.models import SeriesEntry

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 10


def _parse_number(raw_value: str) -> float | None:
    """Return raw_value as a finite float, or None if it is not one."""
    try:
        number = float(raw_value)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _format_number(value: float) -> str:
    return f"{value:f}"


class SeriesStore:
    """Thread-safe in-memory store of recent readings per key.

    Args:
        window_size: Maximum number of numeric samples kept per key.
        clock: Callable returning the current Unix time in seconds.
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self._window_size = window_size
        self._clock = clock
        self._entries: dict[str, SeriesEntry] = {}
        self._lock = threading.Lock()

    @property
    def window_size(self) -> int:
        return self._window_size

    def update(self, key: str, raw_value: str) -> None:
        """Record a new reading for key.

        Finite numbers are appended to the numeric window, anything else is
        kept verbatim as the key's text value. Never raises.
        """
        number = _parse_number(raw_value)
        with self._lock:
            entry = self._entries.setdefault(key, SeriesEntry())
            entry.timestamp = max(self._clock(), entry.timestamp)
            if number is None:
                entry.text = raw_value
            else:
                entry.text = ""
                entry.numbers.append(number)
                del entry.numbers[: -self._window_size]
        if number is None:
            logger.debug("Non numeric value for %s: %r", key, raw_value)

    def latest(self, key: str) -> str:
        """Return the text value of key, or its most recent sample.

        Raises:
            NotFoundError: If the key holds no data.
        """
        with self._lock:
            return self._latest(key)

    def average(self, key: str, count: int) -> str:
        """Average the last ``count`` samples of key.

        The sum of the last ``min(count, available)`` samples is always
        divided by ``count``, so asking for more samples than exist yields
        a value diluted toward zero. Existing consumers rely on this.

        Raises:
            InvalidInputError: If count is not positive.
            NotFoundError: If the key has no numeric samples.
        """
        with self._lock:
            return self._average(key, count)

    def timestamp(self, key: str) -> float:
        """Return the Unix timestamp of the last write to key.

        Raises:
            NotFoundError: If the key has never been written.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                raise NotFoundError(key)
            return entry.timestamp

    def read(self, key: str, count: int | None = None) -> tuple[str, float]:
        """Return the latest (or averaged) value of key with its timestamp.

        Value and timestamp are taken under one lock acquisition.
        """
        with self._lock:
            value = self._latest(key) if count is None else self._average(key, count)
            return value, self._entries[key].timestamp

    def _latest(self, key: str) -> str:
        entry = self._entries.get(key)
        if entry is not None and entry.text:
            return entry.text
        if entry is not None and entry.numbers:
            return _format_number(entry.numbers[-1])
        raise NotFoundError(key)

    def _average(self, key: str, count: int) -> str:
        if count <= 0:
            raise InvalidInputError(f"average window must be positive: {count}")
        if count > sys.maxsize:
            raise InvalidInputError("average window too large")
        entry = self._entries.get(key)
        if entry is None or not entry.numbers:
            raise NotFoundError(key)
        return _format_number(sum(entry.numbers[-count:]) / count)

    def snapshot(self) -> dict[str, SeriesEntry]:
        """Return a copy of every entry, keyed by reading key."""
        with self._lock:
            return {
                key: SeriesEntry(
                    numbers=list(entry.numbers),
                    text=entry.text,
                    timestamp=entry.timestamp,
                )
                for key, entry in self._entries.items()
            }

    def restore(self, entries: Mapping[str, SeriesEntry]) -> None:
        """Replace the store's contents with the given entries."""
        restored = {
            key: SeriesEntry(
                numbers=list(entry.numbers[-self._window_size :]),
                text=entry.text,
                timestamp=entry.timestamp,
            )
            for key, entry in entries.items()
        }
        with self._lock:
            self._entries = restored
        logger.info("Restored %d keys", len(restored))

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())
