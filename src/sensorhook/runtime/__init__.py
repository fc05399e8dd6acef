"""Service wiring and lifecycle."""

from sensorhook.runtime.embedded import EmbeddedRuntime
from sensorhook.runtime.service import SensorHookService, SetResult

__all__ = ["EmbeddedRuntime", "SensorHookService", "SetResult"]
