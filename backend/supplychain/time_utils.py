# Overview: UTC clock and the timestamp formats the ledger accepts and returns.

"""
All ledger timestamps are stored UTC-naive. The API speaks two formats:
ISO-8601 with a trailing 'Z', and whole unix seconds (0 = step not reached).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    """
    The command clock. Read once per command.

    Whole seconds: every outward form of a timestamp (ISO, unix seconds,
    range bounds) has second precision, so the stored value must too.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def _as_utc(dt: datetime) -> datetime:
    # Naive values are already UTC by convention
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _strip_tz(dt: datetime) -> datetime:
    return _as_utc(dt).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 string -> UTC-naive datetime. Blank or None -> None.

    A trailing 'Z' and explicit offsets are converted; a naive string is
    taken as UTC.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return _strip_tz(datetime.fromisoformat(text))


def from_epoch_seconds(value: Union[int, float]) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


def to_epoch_seconds(dt: Optional[datetime]) -> int:
    """Whole unix seconds; None (not reached) maps to 0."""
    if dt is None:
        return 0
    return int(_as_utc(dt).timestamp())


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Query-string timestamp: unix seconds ("1700000000") or ISO-8601."""
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.lstrip("-").isdigit():
        return from_epoch_seconds(int(text))
    return parse_iso_datetime(text)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """datetime -> "2024-01-31T12:00:00Z" (seconds precision). None stays None."""
    if dt is None:
        return None
    return _as_utc(dt).replace(microsecond=0).isoformat().replace("+00:00", "Z")
