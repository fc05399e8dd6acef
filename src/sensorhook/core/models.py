"""Core domain models for readings, trigger executions and handlers."""

from dataclasses import dataclass, field


@dataclass
class SeriesEntry:
    """Recent history of a single reading key.

    A key is either a numeric series or a text value at any moment; the type
    of the latest write decides which one reads return.

    Attributes:
        numbers: Most recent numeric samples, oldest first.
        text: Last text value, empty when the latest write was numeric.
        timestamp: Unix timestamp in seconds of the most recent write.
    """

    numbers: list[float] = field(default_factory=list)
    text: str = ""
    timestamp: float = 0.0


@dataclass(frozen=True)
class Event:
    """Outcome of one handler execution.

    Attributes:
        key: Dotted reading key that triggered the handler.
        script: Filesystem path of the handler.
        timestamp: Unix timestamp in seconds when the handler was started.
        stdout: Captured standard output.
        stderr: Captured standard error.
        exit_code: Process exit status, None when the handler never ran to
            completion (launch failure or timeout).
        timed_out: True when the handler was killed after the timeout.
    """

    key: str
    script: str
    timestamp: float
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    timed_out: bool = False


@dataclass(frozen=True)
class HandlerDescriptor:
    """An executable handler found under the handlers root.

    Attributes:
        path: Full filesystem path of the handler.
        directory: Containing directory relative to the handlers root.
        script: File name of the handler.
        description: Text of the leading block comment, if any.
    """

    path: str
    directory: str
    script: str
    description: str = ""


@dataclass(frozen=True)
class TriggerContext:
    """Values handed to every handler fired by one write."""

    value: str
    path: str
    key: str
    avg_3: str = ""
    avg_5: str = ""
    avg_10: str = ""

    def as_environ(self) -> dict[str, str]:
        """Return the context as handler environment variables."""
        return {
            "EVENT_VALUE": self.value,
            "EVENT_PATH": self.path,
            "EVENT_PATH_DOTTED": self.key,
            "EVENT_VALUE_AVG_3": self.avg_3,
            "EVENT_VALUE_AVG_5": self.avg_5,
            "EVENT_VALUE_AVG_10": self.avg_10,
        }
