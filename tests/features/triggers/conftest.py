"""BDD step definitions for handler dispatch features."""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, then, when

from sensorhook.adapters.handlers import HandlerResolver, TriggerDispatcher
from sensorhook.core.event_log import EventLog
from sensorhook.core.series import SeriesStore
from sensorhook.runtime.service import SensorHookService


@dataclass
class TriggerScenarioContext:
    """State shared between the steps of one scenario."""

    root: Path | None = None
    service: SensorHookService | None = None
    results: list = field(default_factory=list)

    @property
    def events(self) -> list:
        assert self.service is not None
        return self.service.event_log.all()


@pytest.fixture
def ctx() -> TriggerScenarioContext:
    """Fresh scenario context for each test."""
    return TriggerScenarioContext()


# === Background Steps ===
@given("an empty handlers directory")
def step_handlers_directory(ctx: TriggerScenarioContext, handlers_root: Path) -> None:
    ctx.root = handlers_root


@given("a sensorhook service using that directory")
def step_service(ctx: TriggerScenarioContext) -> None:
    store = SeriesStore()
    event_log = EventLog()
    ctx.service = SensorHookService(
        store=store,
        event_log=event_log,
        resolver=HandlerResolver(os.fspath(ctx.root)),
        dispatcher=TriggerDispatcher(store, event_log, timeout=10),
    )


# === Handler Steps ===
@given(parsers.parse('a handler "{name}" that prints "{text}"'))
def step_printing_handler(make_handler: Callable[..., Path], name: str, text: str) -> None:
    make_handler(name, f'echo "{text}"')


@given(parsers.parse('a handler "{name}" that exits with status {code:d}'))
def step_failing_handler(make_handler: Callable[..., Path], name: str, code: int) -> None:
    make_handler(name, f"exit {code}")


@given(parsers.parse('a non-executable file "{name}"'))
def step_plain_file(make_handler: Callable[..., Path], name: str) -> None:
    make_handler(name, "echo never", executable=False)


# === Write Steps ===
@when(parsers.parse('"{path}" is set to "{value}"'))
def step_set(ctx: TriggerScenarioContext, path: str, value: str) -> None:
    assert ctx.service is not None
    ctx.results.append(ctx.service.set(path, value))


# === Assertions ===
@then(parsers.re(r"(?P<count>\d+) events? (is|are) recorded"))
def step_event_count(ctx: TriggerScenarioContext, count: str) -> None:
    assert len(ctx.events) == int(count)


@then(parsers.parse('event {index:d} printed "{text}"'))
def step_event_output(ctx: TriggerScenarioContext, index: int, text: str) -> None:
    assert ctx.events[index - 1].stdout == f"{text}\n"


@then(parsers.parse('event {index:d} ran "{name}"'))
def step_event_script(ctx: TriggerScenarioContext, index: int, name: str) -> None:
    assert ctx.root is not None
    assert ctx.events[index - 1].script == os.fspath(ctx.root / name)


@then(parsers.parse("event {index:d} exited with status {code:d}"))
def step_event_exit(ctx: TriggerScenarioContext, index: int, code: int) -> None:
    assert ctx.events[index - 1].exit_code == code
