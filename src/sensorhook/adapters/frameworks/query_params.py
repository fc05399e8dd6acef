"""Query parameter parsing for the HTTP adapter.

These helpers take query strings parsed by urllib.parse.parse_qs.
"""

import sys

from sensorhook.core.encoding import READING_FORMATS
from sensorhook.core.exceptions import InvalidInputError


def _first(params: dict[str, list[str]], name: str) -> str:
    values = params.get(name) or [""]
    return values[0]


def _parse_value_param(params: dict[str, list[str]]) -> str:
    """Return the submitted value, or an empty string when none was given."""
    return _first(params, "value")


def _parse_average_param(params: dict[str, list[str]]) -> int | None:
    """Parse and validate the 'average' query parameter.

    Returns:
        The window size, or None when the parameter is absent or empty.

    Raises:
        InvalidInputError: If the value is not a positive integer that fits
            in a machine word.
    """
    raw = _first(params, "average")
    if not raw:
        return None
    try:
        count = int(raw)
    except ValueError:
        raise InvalidInputError(f"invalid average: {raw!r}") from None
    if count <= 0:
        raise InvalidInputError(f"average window must be positive: {count}")
    if count > sys.maxsize:
        raise InvalidInputError("average window too large")
    return count


def _parse_format_param(params: dict[str, list[str]]) -> str:
    """Return the requested reading format, defaulting to plain text."""
    fmt = _first(params, "format").lower()
    return fmt if fmt in READING_FORMATS else "text"
