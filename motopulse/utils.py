"""Utility functions."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as dtparser

SUMMARY_LENGTH = 200
EMPTY_SUMMARY = "No description available"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_ws(s: str) -> str:
    return re.sub(r"\s+", " ", s).strip()


def from_epoch(seconds: float) -> datetime:
    return datetime.fromtimestamp(float(seconds), tz=timezone.utc)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-ish timestamp string into an aware UTC datetime."""
    if not value:
        return None
    try:
        dt = dtparser.parse(value)
    except (ValueError, OverflowError):
        return None
    return dt.astimezone(timezone.utc) if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def summarize(body: str, length: int = SUMMARY_LENGTH) -> str:
    text = normalize_ws(body or "")
    if not text:
        return EMPTY_SUMMARY
    if len(text) <= length:
        return text
    return text[:length] + "..."


# Reviews carry confidence as a percentage; cache rows store a 0-1 fraction.
def confidence_to_unit(percent: float) -> float:
    return round(min(max(percent, 0.0), 100.0) / 100.0, 2)


def confidence_to_percent(unit: float) -> int:
    return int(round(min(max(unit or 0.0, 0.0), 1.0) * 100))
