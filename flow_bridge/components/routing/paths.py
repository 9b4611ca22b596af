"""
URL path helpers for endpoint base paths.
"""

from __future__ import annotations

import re

_EDGE_SLASHES = re.compile(r"(^/*)|(/*$)")


def trim_slashes(value: str) -> str:
    """Remove leading and trailing slashes: ``"//a/b/"`` -> ``"a/b"``."""
    return _EDGE_SLASHES.sub("", value)


def url_join(*parts: str) -> str:
    """
    Join URL fragments into an absolute path.

    Each fragment loses one leading and one trailing slash; empty fragments
    are skipped. ``url_join("/a/", "b")`` -> ``"/a/b"``, ``url_join()`` -> ``"/"``.
    """
    cleaned = [re.sub(r"^/|/$", "", part) for part in parts]
    return "/" + "/".join(part for part in cleaned if part)


def escape_regexp(value: str) -> str:
    """
    Escape a literal string for use inside a regular expression.

    Uses the same escaping Starlette applies to literal path segments, so an
    escaped base path compares equal to the literal part of a compiled route.
    """
    return re.escape(value)
