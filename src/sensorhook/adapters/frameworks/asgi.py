"""ASGI application exposing the sensorhook HTTP surface.

This adapter provides a framework-agnostic ASGI application that can be used
with any ASGI server (uvicorn, hypercorn, daphne):

    /set/<path>?value=<v>                    record a reading, fire handlers
    /get/<path>?average=<n>&format=<fmt>     latest or averaged reading
    /ajax/status, /ajax/events,
    /ajax/handlers, /ajax/config             read-only JSON views
    /                                        index page, other static assets

Blocking work (handler execution, forwarding, filesystem scans) runs in
worker threads so that requests are served in parallel.
"""

import asyncio
import json
import posixpath
from collections.abc import Callable, Coroutine
from importlib import resources
from typing import Any
from urllib.parse import parse_qs

from sensorhook import __version__
from sensorhook.adapters.frameworks.query_params import (
    _parse_average_param,
    _parse_format_param,
    _parse_value_param,
)
from sensorhook.core.encoding import (
    encode_events,
    encode_handlers,
    encode_reading,
    encode_status,
)
from sensorhook.core.exceptions import InvalidInputError, NotFoundError
from sensorhook.logs import log_exception
from sensorhook.runtime.embedded import EmbeddedRuntime
from sensorhook.runtime.service import SensorHookService

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

SET_PREFIX = "/set/"
GET_PREFIX = "/get/"

_CONTENT_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
}


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Returns empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


async def _send_response(
    send: Send, status: int, content_type: str, body: str | bytes
) -> None:
    """Send an HTTP response with headers and body."""
    payload = body.encode() if isinstance(body, str) else body
    headers = [
        (b"content-type", content_type.encode()),
        (b"content-length", str(len(payload)).encode()),
    ]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": payload})


def _read_static(name: str) -> bytes | None:
    """Return the packaged static asset called name, or None."""
    normalized = posixpath.normpath("/" + name).lstrip("/")
    if not normalized or normalized.startswith(".."):
        return None
    asset = resources.files("sensorhook").joinpath("static", *normalized.split("/"))
    try:
        return asset.read_bytes()
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        return None


async def _handle_lifespan(receive: Receive, send: Send, runtime: EmbeddedRuntime | None) -> None:
    """Run the runtime's start and stop around the server's lifespan."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            try:
                if runtime is not None:
                    await runtime.start()
            except Exception as exc:
                log_exception("Error starting runtime")
                await send({"type": "lifespan.startup.failed", "message": str(exc)})
                return
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            if runtime is not None:
                await runtime.stop()
            await send({"type": "lifespan.shutdown.complete"})
            return


def create_asgi_app(
    service: SensorHookService,
    runtime: EmbeddedRuntime | None = None,
) -> ASGIApp:
    """Create the ASGI app serving the sensorhook endpoints.

    Args:
        service: The service handling reads and writes.
        runtime: Started on lifespan startup and stopped on shutdown, when
            the server sends lifespan events.

    Returns:
        ASGI application callable.
    """

    async def handle_set(send: Send, path: str, params: dict[str, list[str]]) -> None:
        value = _parse_value_param(params)
        result = await asyncio.to_thread(service.set, path, value)
        if value:
            body = f"Set: {result.key} to '{value}'"
        else:
            body = f"Set: {result.key} no value provided"
        await _send_response(send, 200, "text/plain", body)

    async def handle_get(send: Send, path: str, params: dict[str, list[str]]) -> None:
        try:
            average = _parse_average_param(params)
            value, timestamp = service.get(path, average)
        except (NotFoundError, InvalidInputError) as exc:
            await _send_response(send, 404, "text/plain", str(exc))
            return
        body, content_type = encode_reading(value, timestamp, _parse_format_param(params))
        await _send_response(send, 200, content_type, body)

    async def handle_admin(send: Send, path: str) -> None:
        if path == "/ajax/status":
            body = encode_status(service.status())
        elif path == "/ajax/events":
            body = encode_events(service.events())
        elif path == "/ajax/handlers":
            body = encode_handlers(await asyncio.to_thread(service.handlers))
        elif path == "/ajax/config":
            body = json.dumps(service.config.redacted())
        elif path == "/":
            index = _read_static("index.html")
            if index is None:
                await _send_response(send, 404, "text/plain", "Page not found")
                return
            page = index.decode("utf-8").replace("{{version}}", __version__)
            await _send_response(send, 200, "text/html", page)
            return
        else:
            content = _read_static(path)
            if content is None:
                await _send_response(send, 404, "text/plain", "Page not found")
                return
            extension = posixpath.splitext(path)[1].lower()
            content_type = _CONTENT_TYPES.get(extension, "application/octet-stream")
            await _send_response(send, 200, content_type, content)
            return
        await _send_response(send, 200, "application/json", body)

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send, runtime)
            return
        if scope["type"] != "http":
            return

        path = scope["path"]
        try:
            if path.startswith(SET_PREFIX):
                await handle_set(send, path[len(SET_PREFIX) :], _parse_query_params(scope))
            elif path.startswith(GET_PREFIX):
                await handle_get(send, path[len(GET_PREFIX) :], _parse_query_params(scope))
            else:
                await handle_admin(send, path)
        except Exception:
            log_exception(f"Error handling {scope.get('method', 'GET')} {path}")
            error_body = json.dumps({"error": "Internal Server Error"})
            await _send_response(send, 500, "application/json", error_body)

    return app
