"""Execution of matched handlers and recording of their outcome.

Each handler runs as a child process with no arguments. The trigger
context is passed through the child's own environment mapping, so the
process-wide environment is never touched and overlapping dispatches do
not interfere with each other.
"""

import contextlib
import logging
import os
import signal
import subprocess
import time
from collections.abc import Callable, Iterable

from sensorhook.core.event_log import EventLog
from sensorhook.core.exceptions import ExecutionFailureError, SensorHookError
from sensorhook.core.models import Event, TriggerContext
from sensorhook.core.series import SeriesStore

logger = logging.getLogger(__name__)

DEFAULT_HANDLER_TIMEOUT = 30.0
AVERAGE_WINDOWS = (3, 5, 10)


def _decode(output: bytes | str | None) -> str:
    if output is None:
        return ""
    if isinstance(output, str):
        return output
    return output.decode("utf-8", errors="replace")


class TriggerDispatcher:
    """Runs handlers for one write and appends an Event per handler.

    Args:
        store: Store used to compute the rolling averages.
        event_log: Log receiving one Event per execution.
        timeout: Seconds a handler may run before it is killed.
        clock: Callable returning the current Unix time in seconds.
    """

    def __init__(
        self,
        store: SeriesStore,
        event_log: EventLog,
        timeout: float | None = DEFAULT_HANDLER_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._event_log = event_log
        self._timeout = timeout
        self._clock = clock

    def build_context(self, path: str, key: str, value: str) -> TriggerContext:
        """Collect the values handed to handlers for one write.

        Averages that cannot be computed are passed as empty strings.
        """
        averages: list[str] = []
        for window in AVERAGE_WINDOWS:
            try:
                averages.append(self._store.average(key, window))
            except SensorHookError:
                averages.append("")
        return TriggerContext(
            value=value,
            path=path,
            key=key,
            avg_3=averages[0],
            avg_5=averages[1],
            avg_10=averages[2],
        )

    def _execute(
        self, handler: str, env: dict[str, str]
    ) -> subprocess.CompletedProcess[bytes]:
        """Run handler to completion.

        The handler gets its own session so that a timeout kills it along
        with any children still holding its output pipes.

        Raises:
            ExecutionFailureError: If the handler cannot be launched.
            subprocess.TimeoutExpired: If the handler was killed; carries
                whatever output was produced.
        """
        try:
            process = subprocess.Popen(
                [handler],
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            raise ExecutionFailureError(str(exc), script=handler) from exc
        with process:
            try:
                stdout, stderr = process.communicate(timeout=self._timeout)
            except subprocess.TimeoutExpired:
                with contextlib.suppress(ProcessLookupError):
                    os.killpg(process.pid, signal.SIGKILL)
                stdout, stderr = process.communicate()
                raise subprocess.TimeoutExpired(
                    process.args, self._timeout or 0, output=stdout, stderr=stderr
                ) from None
        return subprocess.CompletedProcess(process.args, process.returncode, stdout, stderr)

    def run(self, handler: str, context: TriggerContext) -> Event:
        """Execute one handler and record the outcome.

        Never raises for handler failures; they are logged and reflected in
        the returned Event.
        """
        logger.info("Executing handler %s for %s", handler, context.key)
        env = {**os.environ, **context.as_environ()}
        started = self._clock()
        try:
            completed = self._execute(handler, env)
        except subprocess.TimeoutExpired as exc:
            logger.error("Handler %s timed out after %ss", handler, self._timeout)
            event = Event(
                key=context.key,
                script=handler,
                timestamp=started,
                stdout=_decode(exc.stdout),
                stderr=_decode(exc.stderr),
                timed_out=True,
            )
        except ExecutionFailureError as exc:
            logger.error("Error starting handler %s: %s", handler, exc)
            event = Event(
                key=context.key,
                script=handler,
                timestamp=started,
                stderr=str(exc),
            )
        else:
            if completed.returncode != 0:
                logger.warning(
                    "Handler %s exited with status %d", handler, completed.returncode
                )
            event = Event(
                key=context.key,
                script=handler,
                timestamp=started,
                stdout=_decode(completed.stdout),
                stderr=_decode(completed.stderr),
                exit_code=completed.returncode,
            )
        self._event_log.append(event)
        return event

    def run_all(self, handlers: Iterable[str], context: TriggerContext) -> list[Event]:
        """Execute every handler in order, each independently of the others."""
        return [self.run(handler, context) for handler in handlers]
