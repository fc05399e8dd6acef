"""Shared test fixtures for all test modules."""

import os
import stat
from collections.abc import Callable
from pathlib import Path

import pytest

try:
    import httpx
except ImportError:
    httpx = None

from sensorhook.adapters.handlers import HandlerResolver, TriggerDispatcher
from sensorhook.config import Config
from sensorhook.core.event_log import EventLog
from sensorhook.core.series import SeriesStore
from sensorhook.runtime.service import SensorHookService


class FakeClock:
    """Manually advanced clock returning Unix seconds."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> SeriesStore:
    """Provide an empty store driven by the fake clock."""
    return SeriesStore(clock=clock)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


# === Handler Fixtures ===


@pytest.fixture
def handlers_root(tmp_path: Path) -> Path:
    """Provide an empty handlers directory."""
    root = tmp_path / "handlers"
    root.mkdir()
    return root


@pytest.fixture
def make_handler(handlers_root: Path) -> Callable[..., Path]:
    """Factory fixture writing a handler script below handlers_root.

    Usage:
        make_handler("sensors/kitchen/fan", "echo $EVENT_VALUE")
    """

    def _make(relative: str, body: str = "", *, executable: bool = True) -> Path:
        path = handlers_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"#!/bin/sh\n{body}\n")
        mode = path.stat().st_mode
        if executable:
            path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        else:
            path.chmod(mode & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
        return path

    return _make


@pytest.fixture
def service(
    store: SeriesStore, event_log: EventLog, handlers_root: Path, clock: FakeClock
) -> SensorHookService:
    """Service wired to the handlers_root fixture with no forwarders."""
    config = Config(handlers_path=os.fspath(handlers_root), mqtt_password="hunter2")
    return SensorHookService(
        store=store,
        event_log=event_log,
        resolver=HandlerResolver(os.fspath(handlers_root)),
        dispatcher=TriggerDispatcher(store, event_log, timeout=10, clock=clock),
        config=config,
    )


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(service)
            async with asgi_test_client(app) as client:
                response = await client.get("/endpoint")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
async def asgi_client(service: SensorHookService, asgi_test_client):
    """Client for an app wrapping the service fixture."""
    from sensorhook.adapters.frameworks.asgi import create_asgi_app

    app = create_asgi_app(service)
    async with asgi_test_client(app) as client:
        yield client
