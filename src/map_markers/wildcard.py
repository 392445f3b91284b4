"""Wildcard matching compatible with the host's asset-code matcher."""

from __future__ import annotations

import re
from functools import lru_cache


def code_path(code: str) -> str:
    """Strip an optional ``domain:`` prefix from an asset code."""
    _, sep, path = code.partition(":")
    return path if sep else code


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> re.Pattern[str]:
    if pattern.startswith("@"):
        return re.compile(pattern[1:])
    parts = (re.escape(part) for part in pattern.split("*"))
    return re.compile(".*".join(parts), re.IGNORECASE | re.DOTALL)


def matches(pattern: str, code: str) -> bool:
    """Return True when ``pattern`` matches the path of ``code``.

    ``*`` matches any run of characters, ``@`` prefixes a raw regular expression
    and a pattern without wildcards is a case-insensitive equality test.
    """
    if not pattern:
        return False
    path = code_path(code)
    if pattern == "*":
        return True
    if not pattern.startswith("@") and "*" not in pattern:
        return pattern.casefold() == path.casefold()
    return _compile(pattern).fullmatch(path) is not None


def validate_pattern(pattern: str) -> None:
    """Raise ``re.error`` when an ``@`` pattern is not a valid regular expression."""
    if pattern.startswith("@"):
        _compile(pattern)
