"""Exception hierarchy for sensorhook."""


class SensorHookError(Exception):
    """Base exception for all sensorhook errors."""


class NotFoundError(SensorHookError):
    """A reading key was requested that has never been written."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"key not found: {key}")


class InvalidInputError(SensorHookError):
    """A request parameter could not be interpreted."""


class IOFailureError(SensorHookError):
    """Filesystem, persistence or network failure."""


class ExecutionFailureError(SensorHookError):
    """A handler could not be launched or did not complete cleanly."""

    def __init__(self, message: str, *, script: str = "") -> None:
        self.script = script
        super().__init__(message)
