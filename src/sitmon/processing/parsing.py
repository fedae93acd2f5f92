"""Tolerant JSON extraction from free-form model output.

Models asked for "ONLY a JSON object" still wrap it in commentary or code
fences. This finds the first balanced top-level object that actually parses,
skipping braces inside string literals.
"""

from typing import Any

import orjson


def _find_object_end(text: str, start: int) -> int | None:
    """Index one past the brace that closes the object opened at ``start``."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1

    return None


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first parseable top-level JSON object in ``text``.

    Args:
        text: Raw completion text, possibly with leading/trailing prose

    Returns:
        The decoded object, or None if no candidate parses as a JSON object
    """
    start = text.find("{")
    while start != -1:
        end = _find_object_end(text, start)
        if end is not None:
            try:
                parsed = orjson.loads(text[start:end])
            except orjson.JSONDecodeError:
                parsed = None
            if isinstance(parsed, dict):
                return parsed
        start = text.find("{", start + 1)
    return None
