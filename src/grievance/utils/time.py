"""Time window helpers."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional, Tuple


def quarter_of(value: datetime) -> int:
    """Return the calendar quarter (1-4) of a datetime."""
    return (value.month - 1) // 3 + 1


def quarter_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Return (start, end) of the calendar quarter containing ``now``.

    The end is the last microsecond of the quarter; tzinfo is preserved.
    """
    quarter = quarter_of(now)
    start = now.replace(
        month=(quarter - 1) * 3 + 1, day=1, hour=0, minute=0, second=0, microsecond=0
    )
    if quarter == 4:
        next_start = start.replace(year=start.year + 1, month=1)
    else:
        next_start = start.replace(month=start.month + 3)
    return start, next_start - timedelta(microseconds=1)


def quarter_label(now: datetime) -> str:
    """Human label such as ``Q2 2026``."""
    return f"Q{quarter_of(now)} {now.year}"


def days_pending(created_at: datetime, now: Optional[datetime] = None) -> int:
    """Whole days since creation, rounded up."""
    if now is None:
        now = datetime.now(created_at.tzinfo)
    elapsed = abs((now - created_at).total_seconds())
    return math.ceil(elapsed / 86400)
