"""Tolerant extraction of a JSON object from free-form model output."""

from __future__ import annotations

import json
from typing import Any

from ledgersync.core.exceptions import MalformedJSONError, NoJSONFoundError


def _balanced_end(text: str, start: int) -> int | None:
    """Index just past the brace that closes ``text[start]``, or None.

    Braces inside JSON string literals are ignored, as are escaped quotes.
    """
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def find_first_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` substring of ``text``.

    Surrounding prose and markdown fences are discarded. If an opening brace
    never closes, scanning resumes at the next opening brace.

    Returns:
        The substring, or None when no balanced object exists
    """
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            return text[start:end]
        start = text.find("{", start + 1)
    return None


def parse_first_json_object(text: str) -> dict[str, Any]:
    """Parse the first balanced object in ``text``.

    Raises:
        NoJSONFoundError: No balanced object is present
        MalformedJSONError: The object was found but is not valid JSON
    """
    candidate = find_first_json_object(text)
    if candidate is None:
        raise NoJSONFoundError("No JSON object found in response")

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedJSONError(f"Invalid JSON in response: {e.msg}") from e

    return data
