# Overview: UTC helpers; the database stores naive UTC and the API speaks ISO-8601 with a trailing Z.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC, the canonical form for every timestamp column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2026-01-15", "2026-01-15T10:30", "...Z" and "...+05:30" are accepted.

    Inputs without an offset are taken as UTC. Blank input gives None;
    malformed input raises ValueError.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    stamp = _as_naive_utc(dt).replace(microsecond=0).isoformat()
    return f"{stamp}Z"
