"""Extraction of human readable descriptions from handler scripts."""

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

DESCRIPTION_SCAN_LINES = 20


def extract_description(lines: Iterable[str], max_lines: int = DESCRIPTION_SCAN_LINES) -> str:
    """Collect the text of a ``/* ... */`` block comment.

    Only the first ``max_lines`` lines are inspected. Inside the block, the
    text following the first ``*`` of each line is kept, stripped, and the
    pieces are concatenated. The opening and closing lines themselves do
    not contribute text.

    Example:
        >>> extract_description(["#!/bin/sh", "/*", " * Turn on the fan", " */"])
        'Turn on the fan'
    """
    description = ""
    in_comment = False
    for index, line in enumerate(lines):
        if index >= max_lines:
            break
        if in_comment and "*/" in line:
            in_comment = False
        if in_comment:
            star = line.find("*")
            if star != -1:
                description += line[star + 1 :].strip()
        if "/*" in line:
            in_comment = True
    return description


def read_description(path: str | Path, max_lines: int = DESCRIPTION_SCAN_LINES) -> str:
    """Read the description of the handler at path.

    Returns:
        The extracted description, or an empty string when there is none
        or the file cannot be read.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            return extract_description(handle, max_lines)
    except OSError as exc:
        logger.debug("Cannot read description of %s: %s", path, exc)
        return ""
