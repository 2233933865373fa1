"""Timestamp parsing and ISO-8601 rendering shared by the API and importers."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any


class InvalidTimestampError(ValueError):
    """Raised when a stored date value cannot be interpreted."""


def _from_epoch(seconds: float) -> datetime:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidTimestampError(f"Timestamp out of range: {seconds!r}") from exc


def _from_mapping(value: Mapping[str, Any]) -> datetime:
    # Document-store exports serialize timestamps as {"seconds", "nanoseconds"}
    # (sometimes with a leading underscore).
    seconds = value.get("seconds", value.get("_seconds"))
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
    if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
        raise InvalidTimestampError(f"Unrecognised timestamp object: {value!r}")
    return _from_epoch(seconds + nanos / 1_000_000_000)


def _from_string(value: str) -> datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidTimestampError(f"Unparseable timestamp: {value!r}") from exc


def parse_timestamp(value: Any) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Accepts datetimes (naive ones are taken to be UTC), ISO-8601 strings,
    epoch seconds and exported timestamp objects. Anything else, including
    None, raises InvalidTimestampError.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = _from_string(value)
    elif isinstance(value, Mapping):
        parsed = _from_mapping(value)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = _from_epoch(value)
    else:
        raise InvalidTimestampError(f"Unsupported timestamp value: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso8601(value: Any) -> str:
    """Render a timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    parsed = parse_timestamp(value)
    return parsed.isoformat(timespec="milliseconds").replace("+00:00", "Z")
