"""Utility functions for label matching and duration parsing."""

import re
from datetime import timedelta
from typing import Dict, Optional


class InvalidSelectorError(ValueError):
    """Raised for a selector that would match every pod."""


class InvalidDurationError(ValueError):
    """Raised for a duration string that cannot be parsed."""


def contain_labels(haystack: Optional[Dict[str, str]], needle: Optional[Dict[str, str]]) -> bool:
    """
    Check that every key of needle is in haystack with the same value.

    An empty needle is contained in anything; callers deciding ownership
    must reject empty selectors with validate_selector first.
    """
    haystack = haystack or {}

    for key, value in (needle or {}).items():
        if key not in haystack or haystack[key] != value:
            return False

    return True


def labels_intersect(a: Optional[Dict[str, str]], b: Optional[Dict[str, str]]) -> bool:
    """Check whether a and b share at least one key with an equal value."""
    a = a or {}
    b = b or {}

    for key, value in a.items():
        if key in b and b[key] == value:
            return True

    return False


def is_valid_selector(selector: Optional[Dict[str, str]]) -> bool:
    return bool(selector)


def validate_selector(selector: Optional[Dict[str, str]]) -> Dict[str, str]:
    """
    Reject empty selectors.

    Returns:
        The selector unchanged

    Raises:
        InvalidSelectorError: if the selector has no labels
    """
    if not is_valid_selector(selector):
        raise InvalidSelectorError("selector has no matchLabels and would select every pod")
    return selector


_DURATION_UNITS = {
    "ns": timedelta(microseconds=0.001),
    "us": timedelta(microseconds=1),
    "µs": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(duration_string: str) -> timedelta:
    """
    Parse a Go style duration string.

    Examples:
        "5s" -> 0:00:05
        "15m" -> 0:15:00
        "1h30m" -> 1:30:00
        "0" -> 0:00:00
    """
    if duration_string is None:
        raise InvalidDurationError("empty duration")

    text = str(duration_string).strip()
    if not text:
        raise InvalidDurationError("empty duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)

    total = timedelta(0)
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise InvalidDurationError(f"invalid duration {duration_string!r}")
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        pos = match.end()

    if pos == 0:
        raise InvalidDurationError(f"invalid duration {duration_string!r}")

    return sign * total


def format_duration(value: timedelta) -> str:
    """
    Format a timedelta as a compact duration string.

    Examples:
        0:15:00 -> "15m0s"
        1:30:00 -> "1h30m0s"
    """
    seconds = int(value.total_seconds())
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"
