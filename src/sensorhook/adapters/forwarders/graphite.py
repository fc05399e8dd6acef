"""Graphite plaintext protocol forwarder."""

import logging
import math
import re
import socket
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 2.0
OCCURRENCE_VALUE = "1"

_WHITESPACE = re.compile(r"\s+")


def format_line(key: str, value: str, timestamp: float) -> str:
    """Format one plaintext protocol line: ``<key> <value> <unix-seconds>``."""
    return f"{key} {value} {int(timestamp)}\n"


def metric_value(value: str) -> str:
    """Return value if it is a finite number, else the occurrence marker."""
    try:
        number = float(value)
    except ValueError:
        return OCCURRENCE_VALUE
    return value.strip() if math.isfinite(number) else OCCURRENCE_VALUE


def metric_name(key: str) -> str:
    """Replace whitespace in key so that it stays one protocol field."""
    return _WHITESPACE.sub("_", key)


class GraphiteForwarder:
    """Sends each update over a short-lived TCP connection.

    Connection failures are logged and swallowed; the caller is never
    blocked for longer than ``timeout`` seconds.

    Args:
        host: Carbon host name.
        port: Carbon plaintext port.
        timeout: Connect and send timeout in seconds.
        clock: Callable returning the current Unix time in seconds.
    """

    def __init__(
        self,
        host: str,
        port: int,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return bool(self.host) and self.port != 0

    def push(self, key: str, path: str, value: str) -> None:
        """Send the update.

        Only finite numbers are sent as-is; empty and text values are sent
        as ``1`` so that the write still registers as an occurrence.
        """
        if not self.enabled:
            return
        line = format_line(metric_name(key), metric_value(value), self._clock())
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as conn:
                conn.sendall(line.encode("utf-8"))
        except OSError as exc:
            logger.warning(
                "Error sending %s to graphite %s:%d: %s", key, self.host, self.port, exc
            )
