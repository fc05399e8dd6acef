"""Discovery of executable handlers under a directory tree.

A handler fires for a request when the directory containing it is the
handlers root or an ancestor of the directory the request path points to,
so handlers near the root react to broad sets of readings and nested ones
to narrow sets.
"""

import logging
import os
import stat
from collections.abc import Iterator

from sensorhook.core.description import read_description
from sensorhook.core.exceptions import IOFailureError
from sensorhook.core.models import HandlerDescriptor

logger = logging.getLogger(__name__)

_EXECUTE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def _split_path(path: str) -> list[str]:
    return [segment for segment in path.replace(os.sep, "/").split("/") if segment]


def _log_walk_error(error: OSError) -> None:
    logger.warning("Error scanning handlers: %s", error)


class HandlerResolver:
    """Finds handlers for request paths. Nothing is cached between scans.

    Args:
        root: Directory containing the handler tree.
    """

    def __init__(self, root: str) -> None:
        self._root = os.path.abspath(root)

    @property
    def root(self) -> str:
        return self._root

    def _executables(self) -> Iterator[tuple[str, list[str]]]:
        """Yield (path, directory segments relative to root) per executable."""
        if not os.path.isdir(self._root) or not os.access(self._root, os.R_OK | os.X_OK):
            raise IOFailureError(f"handlers directory is not readable: {self._root}")
        for dirpath, dirnames, filenames in os.walk(self._root, onerror=_log_walk_error):
            dirnames.sort()
            relative = os.path.relpath(dirpath, self._root)
            segments = [] if relative == os.curdir else _split_path(relative)
            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                try:
                    mode = os.stat(path).st_mode
                except OSError as exc:
                    logger.warning("Cannot stat handler %s: %s", path, exc)
                    continue
                if stat.S_ISREG(mode) and mode & _EXECUTE_BITS:
                    yield path, segments

    def match(self, request_path: str) -> list[str]:
        """Return the handlers that fire for request_path, sorted by path.

        Args:
            request_path: Slash separated request path, e.g. ``sensors/temp``.

        Raises:
            IOFailureError: If the handlers root cannot be read.
        """
        requested = _split_path(request_path)
        matches = [
            path
            for path, segments in self._executables()
            if requested[: len(segments)] == segments
        ]
        return sorted(matches)

    def describe(self) -> list[HandlerDescriptor]:
        """List every executable handler with its description."""
        try:
            found = list(self._executables())
        except IOFailureError as exc:
            logger.error("%s", exc)
            return []
        descriptors = []
        for path, segments in sorted(found):
            logger.debug("Found executable: %s", path)
            descriptors.append(
                HandlerDescriptor(
                    path=path,
                    directory="/".join(segments),
                    script=os.path.basename(path),
                    description=read_description(path),
                )
            )
        return descriptors
