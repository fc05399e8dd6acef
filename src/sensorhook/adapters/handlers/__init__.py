"""Handler discovery and execution."""

from sensorhook.adapters.handlers.dispatcher import TriggerDispatcher
from sensorhook.adapters.handlers.resolver import HandlerResolver

__all__ = ["HandlerResolver", "TriggerDispatcher"]
