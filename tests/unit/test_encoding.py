"""Tests for reading, event and handler encoders."""

import json

import pytest

from sensorhook.core.encoding import (
    encode_events,
    encode_handlers,
    encode_reading,
    encode_status,
)
from sensorhook.core.models import Event, HandlerDescriptor, SeriesEntry

pytestmark = [pytest.mark.unit, pytest.mark.core]


class TestEncodeReading:
    """Tests for encode_reading()."""

    def test_json_inserts_number_literal(self) -> None:
        body, content_type = encode_reading("21.500000", 1700000000.9, "json")

        assert body == '{"value": 21.500000, "timestamp": 1700000000}'
        assert content_type == "application/json"
        assert json.loads(body) == {"value": 21.5, "timestamp": 1700000000}

    def test_json_quotes_text_values(self) -> None:
        body, _ = encode_reading('door "open"', 5.0, "json")

        assert json.loads(body) == {"value": 'door "open"', "timestamp": 5}

    def test_csv(self) -> None:
        assert encode_reading("1.000000", 42.0, "csv") == ("42,1.000000", "text/csv")

    def test_pipe(self) -> None:
        assert encode_reading("1.000000", 42.0, "pipe") == ("42|1.000000", "text/plain")

    def test_default_is_bare_value(self) -> None:
        assert encode_reading("on", 42.0) == ("on", "text/plain")


class TestEncodeCollections:
    """Tests for the admin JSON encoders."""

    def test_status(self) -> None:
        body = encode_status({"k": SeriesEntry(numbers=[1.0], text="", timestamp=3.0)})

        assert json.loads(body) == {"k": {"numbers": [1.0], "text": "", "timestamp": 3.0}}

    def test_events(self) -> None:
        event = Event(key="k", script="/h/a", timestamp=1.0, stdout="out", exit_code=0)

        assert json.loads(encode_events([event])) == [
            {
                "uri": "k",
                "script": "/h/a",
                "timestamp": 1.0,
                "stdout": "out",
                "stderr": "",
                "exit_code": 0,
                "timed_out": False,
            }
        ]

    def test_handlers(self) -> None:
        descriptor = HandlerDescriptor(
            path="/h/sensors/fan", directory="sensors", script="fan", description="Fan"
        )

        assert json.loads(encode_handlers([descriptor])) == [
            {"path": "sensors", "script": "fan", "description": "Fan"}
        ]
