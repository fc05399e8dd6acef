"""JSON file storage for process state snapshots.

The document holds every reading key with its window, text value and
timestamp, and the full ordered event list:

    {"values": {"<key>": {"numbers": [...], "text": "...", "timestamp": ...}},
     "events": [{"uri": ..., "script": ..., "timestamp": ..., ...}]}

Snapshots are written to a temporary file and renamed into place, so a
crash during a write leaves the previous snapshot intact.
"""

import contextlib
import json
import logging
import math
import os
import stat
import tempfile
from datetime import datetime
from typing import Any

from sensorhook.core.encoding import entry_to_dict, event_to_dict
from sensorhook.core.event_log import EventLog
from sensorhook.core.models import Event, SeriesEntry
from sensorhook.core.series import SeriesStore

logger = logging.getLogger(__name__)


def _decode_timestamp(raw: Any) -> float:
    """Accept Unix seconds or an ISO-8601 string."""
    if isinstance(raw, bool):
        raise TypeError("timestamp must be a number or ISO-8601 string")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).timestamp()
    raise TypeError("timestamp must be a number or ISO-8601 string")


def _file_mode(path: str) -> int:
    """Return the permission bits a snapshot at path should carry.

    An existing file keeps its mode; a new one gets 0o666 minus the umask.
    """
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _decode_entry(raw: Any) -> SeriesEntry:
    if not isinstance(raw, dict):
        raise TypeError("entry must be an object")
    numbers = raw.get("numbers") or []
    if not isinstance(numbers, list):
        raise TypeError("numbers must be a list")
    decoded = []
    for number in numbers:
        if isinstance(number, bool) or not isinstance(number, (int, float)):
            raise TypeError(f"not a number: {number!r}")
        if not math.isfinite(number):
            raise ValueError(f"not a finite number: {number!r}")
        decoded.append(float(number))
    text = raw.get("text") or ""
    if not isinstance(text, str):
        raise TypeError("text must be a string")
    return SeriesEntry(
        numbers=decoded,
        text=text,
        timestamp=_decode_timestamp(raw.get("timestamp", 0.0)),
    )


def _decode_event(raw: Any) -> Event:
    if not isinstance(raw, dict):
        raise TypeError("event must be an object")
    exit_code = raw.get("exit_code")
    if exit_code is not None and not isinstance(exit_code, int):
        raise TypeError("exit_code must be an integer")
    return Event(
        key=str(raw["uri"]),
        script=str(raw["script"]),
        timestamp=_decode_timestamp(raw["timestamp"]),
        stdout=str(raw.get("stdout") or ""),
        stderr=str(raw.get("stderr") or ""),
        exit_code=exit_code,
        timed_out=bool(raw.get("timed_out", False)),
    )


class JsonSnapshotStorage:
    """Implementation of SnapshotStoragePort backed by one JSON file.

    Args:
        path: Location of the snapshot file.
    """

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def dumps(self, store: SeriesStore, event_log: EventLog) -> str:
        """Serialize the store and event log to a JSON document."""
        document = {
            "values": {key: entry_to_dict(entry) for key, entry in store.snapshot().items()},
            "events": [event_to_dict(event) for event in event_log.all()],
        }
        return json.dumps(document, indent=2)

    def save(self, store: SeriesStore, event_log: EventLog) -> bool:
        """Write a snapshot atomically.

        Returns:
            True on success, False if the file could not be written.
        """
        body = self.dumps(store, event_log)
        directory = os.path.dirname(os.path.abspath(self._path))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".snapshot-", dir=directory)
        except OSError as exc:
            logger.error("Error creating data file in %s: %s", directory, exc)
            return False
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(body)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, _file_mode(self._path))
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.error("Error writing data file %s: %s", self._path, exc)
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            return False
        logger.info("Wrote data file %s", self._path)
        return True

    def loads(self, body: str, store: SeriesStore, event_log: EventLog) -> None:
        """Populate store and event log from a JSON document.

        Malformed entries are skipped with a warning.

        Raises:
            ValueError: If body is not a JSON object.
        """
        document = json.loads(body)
        if not isinstance(document, dict):
            raise ValueError("snapshot document must be a JSON object")

        entries: dict[str, SeriesEntry] = {}
        raw_values = document.get("values") or {}
        if isinstance(raw_values, dict):
            for key, raw in raw_values.items():
                try:
                    entries[key] = _decode_entry(raw)
                except (KeyError, TypeError, ValueError) as exc:
                    logger.warning("Skipping malformed value %r: %s", key, exc)
        else:
            logger.warning("Skipping malformed values section")
        store.restore(entries)

        events: list[Event] = []
        raw_events = document.get("events") or []
        if isinstance(raw_events, list):
            for index, raw in enumerate(raw_events):
                try:
                    events.append(_decode_event(raw))
                except (KeyError, TypeError, ValueError) as exc:
                    logger.warning("Skipping malformed event #%d: %s", index, exc)
        else:
            logger.warning("Skipping malformed events section")
        event_log.extend(events)

    def load(self, store: SeriesStore, event_log: EventLog) -> None:
        """Restore a previous snapshot; any failure leads to a cold start."""
        try:
            with open(self._path, encoding="utf-8") as handle:
                body = handle.read()
        except FileNotFoundError:
            logger.info("No data file at %s, starting empty", self._path)
            return
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Error opening data file %s: %s", self._path, exc)
            return
        try:
            self.loads(body, store, event_log)
        except ValueError as exc:
            logger.warning("Error decoding data file %s: %s", self._path, exc)
            return
        logger.info("Loaded data file %s", self._path)
