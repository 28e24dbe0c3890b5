"""Timestamp normalization and resolve-time helpers."""

from __future__ import annotations

from datetime import datetime

import pandas as pd
import pytz

from .config import TIMEZONE

SECONDS_PER_DAY = 86400.0


def parse_timestamp(value) -> datetime | None:
    """Parse a Jira timestamp (string, datetime or pandas Timestamp) into an aware UTC datetime.

    Returns None when the input is empty or cannot be parsed.
    """
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def ensure_aware(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.timezone(TIMEZONE).localize(value)
    return value


def elapsed_days(start: datetime | None, end: datetime | None) -> float | None:
    start = ensure_aware(start)
    end = ensure_aware(end)
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / SECONDS_PER_DAY
