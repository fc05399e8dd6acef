"""Integration tests for running handlers as child processes."""

import os
import threading
from pathlib import Path

import pytest

from sensorhook.adapters.handlers import TriggerDispatcher
from sensorhook.core.event_log import EventLog
from sensorhook.core.models import TriggerContext
from sensorhook.core.series import SeriesStore

pytestmark = [pytest.mark.integration, pytest.mark.handlers]


@pytest.fixture
def dispatcher(store: SeriesStore, event_log: EventLog, clock) -> TriggerDispatcher:
    return TriggerDispatcher(store, event_log, timeout=10, clock=clock)


def _context(**overrides: str) -> TriggerContext:
    values = {"value": "21.5", "path": "sensors/temp", "key": "sensors.temp"}
    values.update(overrides)
    return TriggerContext(**values)


class TestBuildContext:
    """Tests for TriggerDispatcher.build_context()."""

    def test_averages_use_requested_windows(
        self, store: SeriesStore, dispatcher: TriggerDispatcher
    ) -> None:
        for value in ("1", "2", "3"):
            store.update("sensors.temp", value)

        context = dispatcher.build_context("sensors/temp", "sensors.temp", "3")

        assert context.avg_3 == "2.000000"
        assert context.avg_5 == "1.200000"
        assert context.avg_10 == "0.600000"

    def test_unavailable_averages_are_empty(self, dispatcher: TriggerDispatcher) -> None:
        context = dispatcher.build_context("door", "door", "open")

        assert (context.avg_3, context.avg_5, context.avg_10) == ("", "", "")

    def test_environment_names(self) -> None:
        assert set(_context().as_environ()) == {
            "EVENT_VALUE",
            "EVENT_PATH",
            "EVENT_PATH_DOTTED",
            "EVENT_VALUE_AVG_3",
            "EVENT_VALUE_AVG_5",
            "EVENT_VALUE_AVG_10",
        }


class TestRun:
    """Tests for TriggerDispatcher.run()."""

    def test_captures_stdout_and_stderr(
        self, make_handler, dispatcher: TriggerDispatcher, event_log: EventLog, clock
    ) -> None:
        handler = make_handler("both", "echo out\necho err >&2")

        event = dispatcher.run(str(handler), _context())

        assert event.stdout == "out\n"
        assert event.stderr == "err\n"
        assert event.exit_code == 0
        assert event.timed_out is False
        assert event.key == "sensors.temp"
        assert event.script == str(handler)
        assert event.timestamp == clock.now
        assert event_log.all() == [event]

    def test_handler_receives_context_in_environment(
        self, make_handler, dispatcher: TriggerDispatcher
    ) -> None:
        handler = make_handler(
            "env",
            'echo "$EVENT_VALUE|$EVENT_PATH|$EVENT_PATH_DOTTED|'
            '$EVENT_VALUE_AVG_3|$EVENT_VALUE_AVG_5|$EVENT_VALUE_AVG_10"',
        )
        context = _context(avg_3="1.0", avg_5="2.0", avg_10="3.0")

        event = dispatcher.run(str(handler), context)

        assert event.stdout == "21.5|sensors/temp|sensors.temp|1.0|2.0|3.0\n"

    def test_process_environment_is_not_modified(
        self, make_handler, dispatcher: TriggerDispatcher
    ) -> None:
        handler = make_handler("noop", "true")

        dispatcher.run(str(handler), _context())

        assert "EVENT_VALUE" not in os.environ

    def test_non_zero_exit_is_recorded(
        self, make_handler, dispatcher: TriggerDispatcher
    ) -> None:
        handler = make_handler("fails", "echo partial\nexit 3")

        event = dispatcher.run(str(handler), _context())

        assert event.exit_code == 3
        assert event.stdout == "partial\n"

    def test_launch_failure_is_recorded(
        self, tmp_path: Path, dispatcher: TriggerDispatcher, event_log: EventLog
    ) -> None:
        missing = tmp_path / "gone"

        event = dispatcher.run(str(missing), _context())

        assert event.exit_code is None
        assert event.stderr
        assert len(event_log) == 1

    def test_timeout_kills_handler(
        self, make_handler, store: SeriesStore, event_log: EventLog
    ) -> None:
        handler = make_handler("hang", "echo started\nsleep 30")
        dispatcher = TriggerDispatcher(store, event_log, timeout=0.5)

        event = dispatcher.run(str(handler), _context())

        assert event.timed_out is True
        assert event.exit_code is None
        assert event.stdout == "started\n"
        assert event_log.all() == [event]


class TestRunAll:
    """Tests for TriggerDispatcher.run_all()."""

    def test_failure_does_not_stop_later_handlers(
        self, make_handler, tmp_path: Path, dispatcher: TriggerDispatcher, event_log: EventLog
    ) -> None:
        failing = make_handler("a_fails", "exit 1")
        working = make_handler("b_works", "echo ok")

        events = dispatcher.run_all(
            [str(failing), str(tmp_path / "missing"), str(working)], _context()
        )

        assert [e.exit_code for e in events] == [1, None, 0]
        assert events[2].stdout == "ok\n"
        assert event_log.all() == events

    def test_concurrent_dispatches_keep_their_own_context(
        self, make_handler, dispatcher: TriggerDispatcher
    ) -> None:
        handler = make_handler("echo_value", 'sleep 0.1\necho "$EVENT_VALUE"')
        results: dict[str, str] = {}

        def dispatch(value: str) -> None:
            event = dispatcher.run(str(handler), _context(value=value))
            results[value] = event.stdout

        threads = [threading.Thread(target=dispatch, args=(str(n),)) for n in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results == {str(n): f"{n}\n" for n in range(5)}
