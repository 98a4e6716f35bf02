"""Utilities for navigating the nested JSON returned by the ORCID API."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

__all__ = [
    "date_to_iso",
    "join_present",
    "safe_get",
    "to_text",
]


def safe_get(value: Any, *keys: str) -> Any:
    """Get a value from a nested dictionary, or None if any part of the path is missing.

    :param value: A value decoded from JSON
    :param keys: The keys to walk, in order
    :returns: The value at the end of the path. None if the path runs through
        something that isn't a dictionary, a key is missing, or the final value
        is a JSON null.

    >>> safe_get({"name": {"given-names": {"value": "Josiah"}}}, "name", "given-names", "value")
    'Josiah'
    >>> safe_get({"name": None}, "name", "given-names", "value") is None
    True
    """
    for key in keys:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def to_text(value: Any) -> str | None:
    """Coerce a scalar to a string, and anything else (e.g., a dict) to None."""
    if value is None or isinstance(value, dict | list):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_int(value: Any) -> int | None:
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if value.isascii() and value.isdigit():
            return int(value)
    return None


def date_to_iso(date: Any) -> str | None:
    """Convert an ORCID partial date into an ISO 8601 string (or prefix of one).

    :param date: A dictionary with ``year``, ``month``, and ``day`` keys, each
        of which is either a ``{"value": ...}`` object (as returned by the API)
        or a bare scalar
    :returns: A string like ``2020``, ``2020-03``, or ``2020-03-15``, truncated
        at the first missing part. None if there's no year.

    No calendar validation happens here, since ORCID doesn't do any either.

    >>> date_to_iso({"year": {"value": "2020"}, "month": {"value": "3"}})
    '2020-03'
    >>> date_to_iso({}) is None
    True
    """
    if not isinstance(date, dict):
        return None
    year = _as_int(date.get("year"))
    if year is None:
        return None
    rv = f"{year:04d}"
    month = _as_int(date.get("month"))
    if month is None:
        return rv
    rv += f"-{month:02d}"
    day = _as_int(date.get("day"))
    if day is None:
        return rv
    return rv + f"-{day:02d}"


def join_present(values: Iterable[Any], sep: str = ", ") -> str | None:
    """Join the values that aren't missing, or return None if there are none."""
    parts = [text for value in values if (text := to_text(value))]
    if not parts:
        return None
    return sep.join(parts)
