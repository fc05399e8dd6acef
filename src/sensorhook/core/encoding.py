"""Encoders for readings, events and handler listings."""

import json
import math
from collections.abc import Iterable, Mapping
from typing import Any

from sensorhook.core.models import Event, HandlerDescriptor, SeriesEntry

READING_FORMATS = {"json", "csv", "pipe", "text"}


def _is_number(value: str) -> bool:
    try:
        return math.isfinite(float(value))
    except ValueError:
        return False


def encode_reading(value: str, timestamp: float, fmt: str = "text") -> tuple[str, str]:
    """Encode a single reading for the ``/get`` endpoint.

    Args:
        value: Latest or averaged value as text.
        timestamp: Unix timestamp of the last write; truncated to seconds.
        fmt: One of json, csv, pipe; anything else yields the bare value.

    Returns:
        Tuple of (body, content type).
    """
    seconds = int(timestamp)
    if fmt == "json":
        literal = value if _is_number(value) else json.dumps(value)
        return f'{{"value": {literal}, "timestamp": {seconds}}}', "application/json"
    if fmt == "csv":
        return f"{seconds},{value}", "text/csv"
    if fmt == "pipe":
        return f"{seconds}|{value}", "text/plain"
    return value, "text/plain"


def entry_to_dict(entry: SeriesEntry) -> dict[str, Any]:
    return {
        "numbers": list(entry.numbers),
        "text": entry.text,
        "timestamp": entry.timestamp,
    }


def event_to_dict(event: Event) -> dict[str, Any]:
    return {
        "uri": event.key,
        "script": event.script,
        "timestamp": event.timestamp,
        "stdout": event.stdout,
        "stderr": event.stderr,
        "exit_code": event.exit_code,
        "timed_out": event.timed_out,
    }


def descriptor_to_dict(descriptor: HandlerDescriptor) -> dict[str, str]:
    return {
        "path": descriptor.directory,
        "script": descriptor.script,
        "description": descriptor.description,
    }


def encode_status(entries: Mapping[str, SeriesEntry]) -> str:
    """Encode a store snapshot as a JSON object keyed by reading key."""
    return json.dumps({key: entry_to_dict(entry) for key, entry in entries.items()})


def encode_events(events: Iterable[Event]) -> str:
    """Encode events as a JSON array, oldest first."""
    return json.dumps([event_to_dict(event) for event in events])


def encode_handlers(descriptors: Iterable[HandlerDescriptor]) -> str:
    """Encode handler descriptors as a JSON array."""
    return json.dumps([descriptor_to_dict(d) for d in descriptors])
