"""
app/timestamps.py

Normalization and display of `checkedAt` values.

Records arrive with `checkedAt` either as a structured
``{"seconds": ..., "nanoseconds": ...}`` pair or as an ISO-8601 string.
Both are collapsed into float epoch seconds at the ingestion boundary so the
rest of the code only ever compares numbers.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone, tzinfo
from typing import Any

_NANOS_PER_SECOND = 1_000_000_000


def to_epoch_seconds(value: Any) -> float:
    """
    Convert one `checkedAt` representation to float epoch seconds.

    Accepts numbers, aware or naive datetimes (naive is read as UTC),
    ISO-8601 strings (a trailing ``Z`` is allowed) and mappings with
    ``seconds`` plus an optional ``nanoseconds`` fraction.

    Raises:
        ValueError: string or mapping content cannot be interpreted.
        TypeError: unsupported value type.
    """

    if isinstance(value, bool):
        raise TypeError("checkedAt cannot be a boolean.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        return _aware(value).timestamp()
    if isinstance(value, str):
        return _parse_iso(value)
    if isinstance(value, Mapping):
        return _from_pair(value)
    raise TypeError(f"Unsupported checkedAt type: {type(value).__name__}")


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_iso(raw: str) -> float:
    text = raw.strip()
    if not text:
        raise ValueError("checkedAt string is empty.")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"checkedAt '{raw}' is not an ISO-8601 timestamp.") from exc
    return _aware(parsed).timestamp()


def _from_pair(pair: Mapping[str, Any]) -> float:
    seconds = pair.get("seconds")
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise ValueError("checkedAt mapping requires numeric 'seconds'.")
    nanoseconds = pair.get("nanoseconds") or 0
    if isinstance(nanoseconds, bool) or not isinstance(nanoseconds, (int, float)):
        raise ValueError("checkedAt 'nanoseconds' must be numeric.")
    return float(seconds) + float(nanoseconds) / _NANOS_PER_SECOND


def format_timestamp(epoch_seconds: float | None, tz: tzinfo = timezone.utc) -> str:
    """
    Render epoch seconds as ``Mon D, YYYY, H:MM AM`` in *tz*; ``N/A`` when missing.
    """

    if epoch_seconds is None:
        return "N/A"
    moment = datetime.fromtimestamp(epoch_seconds, tz)
    hour = moment.hour % 12 or 12
    return f"{moment:%b} {moment.day}, {moment.year}, {hour}:{moment:%M} {moment:%p}"
