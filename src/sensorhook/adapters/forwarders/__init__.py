"""Forwarders pushing every update to downstream sinks."""

import logging
from collections.abc import Iterable

from sensorhook.adapters.forwarders.graphite import GraphiteForwarder
from sensorhook.adapters.forwarders.mqtt import MqttForwarder
from sensorhook.core.ports import ForwarderPort

logger = logging.getLogger(__name__)


class ForwarderSet:
    """Fans an update out to several forwarders.

    A failing forwarder is logged and skipped; the others still receive
    the update and the caller never sees the error.
    """

    def __init__(self, forwarders: Iterable[ForwarderPort] = ()) -> None:
        self._forwarders = list(forwarders)

    def __len__(self) -> int:
        return len(self._forwarders)

    def push(self, key: str, path: str, value: str) -> None:
        for forwarder in self._forwarders:
            try:
                forwarder.push(key, path, value)
            except Exception:
                logger.exception("Forwarder %s failed for %s", type(forwarder).__name__, key)


__all__ = ["ForwarderSet", "GraphiteForwarder", "MqttForwarder"]
