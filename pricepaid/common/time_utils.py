"""UTC-focused helpers for run metadata."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")


def next_check_iso(interval: timedelta) -> str:
    return (utc_now() + interval).isoformat(timespec="seconds")
