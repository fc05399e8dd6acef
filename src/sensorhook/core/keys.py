"""Normalisation of request paths into reading keys."""


def normalize_path(path: str) -> str:
    """Return the lower-cased request path with surrounding slashes removed.

    This is the un-normalised form handed to handlers as ``EVENT_PATH`` and
    used to build publish/subscribe topics.
    """
    return path.strip("/").lower()


def normalize_key(path: str) -> str:
    """Convert a hierarchical request path into a dotted reading key.

    Example:
        >>> normalize_key("sensors/Kitchen/temp")
        'sensors.kitchen.temp'
    """
    return normalize_path(path).replace("/", ".")
