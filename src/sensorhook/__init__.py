"""sensorhook - telemetry sink and automation trigger.

Readings pushed over HTTP are kept in a bounded per-key window, forwarded
to Graphite and MQTT, and fire matching executable handlers.
"""

from sensorhook.core.event_log import EventLog
from sensorhook.core.exceptions import (
    ExecutionFailureError,
    InvalidInputError,
    IOFailureError,
    NotFoundError,
    SensorHookError,
)
from sensorhook.core.models import Event, HandlerDescriptor, SeriesEntry, TriggerContext
from sensorhook.core.series import SeriesStore

__version__ = "0.2.0"

__all__ = [
    "Event",
    "EventLog",
    "ExecutionFailureError",
    "HandlerDescriptor",
    "IOFailureError",
    "InvalidInputError",
    "NotFoundError",
    "SensorHookError",
    "SeriesEntry",
    "SeriesStore",
    "TriggerContext",
    "__version__",
]
