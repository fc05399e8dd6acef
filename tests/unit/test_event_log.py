"""Tests for the bounded event log."""

import threading

import pytest

from sensorhook.core.event_log import DEFAULT_MAX_EVENTS, EventLog
from sensorhook.core.models import Event

pytestmark = [pytest.mark.unit, pytest.mark.storage]


def _event(n: int) -> Event:
    return Event(key="k", script=f"/handlers/h{n}", timestamp=1000.0 + n, stdout=str(n))


class TestEventLog:
    """Tests for EventLog."""

    def test_all_returns_events_oldest_first(self) -> None:
        log = EventLog()
        events = [_event(n) for n in range(3)]
        for event in events:
            log.append(event)

        assert log.all() == events

    def test_default_capacity_is_250(self) -> None:
        assert EventLog().max_size == DEFAULT_MAX_EVENTS == 250

    def test_overflow_drops_oldest(self) -> None:
        log = EventLog()
        events = [_event(n) for n in range(251)]
        for event in events:
            log.append(event)

        assert len(log) == 250
        assert events[0] not in log.all()
        assert log.all() == events[1:]

    def test_extend_respects_capacity(self) -> None:
        log = EventLog(max_size=2)
        log.extend(_event(n) for n in range(5))

        assert [e.stdout for e in log.all()] == ["3", "4"]

    def test_all_returns_a_copy(self) -> None:
        log = EventLog()
        log.append(_event(1))
        log.all().clear()

        assert len(log) == 1

    def test_max_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            EventLog(max_size=0)

    def test_concurrent_appends_never_exceed_capacity(self) -> None:
        log = EventLog(max_size=50)

        def append_many(offset: int) -> None:
            for n in range(100):
                log.append(_event(offset + n))
                assert len(log.all()) <= 50

        threads = [threading.Thread(target=append_many, args=(t * 100,)) for t in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(log) == 50
