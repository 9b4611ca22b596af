"""
Nested property lookup on messages and settings objects.

A utility for flow code that embeds the bridge, such as nodes reading
candidate message properties. The bridge itself reads its reserved keys
directly.

Paths use dots and brackets: ``"payload.items[0].name"``,
``'headers["content-type"]'``.
"""

from __future__ import annotations

import re
from typing import Any

_TOKEN = re.compile(
    r"""
    \[\s*(?P<index>-?\d+)\s*\]          # [0]
    | \[\s*(?P<quote>["'])(?P<key>.*?)(?P=quote)\s*\]   # ["key"]
    | (?P<name>[^.\[\]]+)               # name
    """,
    re.VERBOSE,
)

_MISSING = object()


def parse_property_path(path: str) -> list[str | int]:
    """
    Split a property path into keys and list indices.

    Raises:
        ValueError: If the path is empty or contains unparseable text.
    """
    parts: list[str | int] = []
    position = 0
    path = path.strip()
    while position < len(path):
        if path[position] == ".":
            position += 1
            continue
        match = _TOKEN.match(path, position)
        if match is None:
            raise ValueError(f"Invalid property path: {path!r}")
        if match.group("index") is not None:
            parts.append(int(match.group("index")))
        elif match.group("quote") is not None:
            parts.append(match.group("key"))
        else:
            parts.append(match.group("name"))
        position = match.end()
    if not parts:
        raise ValueError("Property path must not be empty")
    return parts


def get_message_property(obj: Any, path: str) -> Any:
    """
    Resolve ``path`` against ``obj``.

    Raises:
        KeyError: If any step of the path does not exist.
    """
    current = obj
    for part in parse_property_path(path):
        if isinstance(part, int):
            if not isinstance(current, (list, tuple)) or not -len(current) <= part < len(current):
                raise KeyError(path)
            current = current[part]
        elif isinstance(current, dict):
            if part not in current:
                raise KeyError(path)
            current = current[part]
        else:
            value = getattr(current, part, _MISSING)
            if value is _MISSING:
                raise KeyError(path)
            current = value
    return current


def get_props(obj: Any, props: str | list[str] | tuple[str, ...], default: Any = None) -> Any:
    """
    Return the value of the first property path found on ``obj``.

    Args:
        obj: The dict (or object) to search.
        props: One path or an ordered list of candidate paths. Searching
            stops at the first path that exists.
        default: Returned when none of the paths exists.

    Never raises for a missing or malformed path.
    """
    if isinstance(props, str):
        props = [props]
    elif not isinstance(props, (list, tuple)):
        return default

    for path in props:
        try:
            return get_message_property(obj, path)
        except (KeyError, ValueError, TypeError):
            continue
    return default
