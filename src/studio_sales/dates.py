"""Date-range resolution and month labelling.

This module turns the symbolic windows offered by the dashboard ("30d",
"90d", "ytd", "all") or explicit bounds into concrete ``YYYY-MM-DD``
strings used to filter the order stream, and formats ``YYYY-MM`` keys into
short English labels such as ``"Jan 2024"``.

Unrecognized input never raises; it resolves to an unbounded range or to
``None`` for labels.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

# English month abbreviations (January through December)
MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


class TimeRange:
    """Symbolic time windows accepted by ``resolve_range``."""

    ALL = "all"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    YEAR_TO_DATE = "ytd"


TIME_RANGES = (
    TimeRange.ALL,
    TimeRange.LAST_30_DAYS,
    TimeRange.LAST_90_DAYS,
    TimeRange.YEAR_TO_DATE,
)

_TRAILING_DAYS = {
    TimeRange.LAST_30_DAYS: 30,
    TimeRange.LAST_90_DAYS: 90,
}


@dataclass(frozen=True)
class DateRange:
    """Inclusive date bounds; ``None`` means unbounded on that side."""

    start: Optional[str] = None
    end: Optional[str] = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None or self.end is not None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"start": self.start, "end": self.end}


def resolve_range(
    time_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> DateRange:
    """Resolve a symbolic window or explicit bounds into a DateRange.

    Rules, in priority order:
    1. An explicit ``start_date`` wins and is returned verbatim together
       with ``end_date`` (which may be None).
    2. No ``time_range`` or ``"all"`` gives an unbounded range.
    3. ``"30d"`` / ``"90d"`` go back that many days from now; ``"ytd"``
       starts on January 1st of the current year. All end today.
    4. Anything else falls back to an unbounded range.

    Args:
        time_range: Symbolic window, one of ``TIME_RANGES``.
        start_date: Explicit start date (YYYY-MM-DD).
        end_date: Explicit end date (YYYY-MM-DD).
        now: Reference instant; defaults to the current UTC time.

    Returns:
        The resolved DateRange.

    Examples:
        >>> resolve_range("30d", "2024-01-01", "2024-02-01")
        DateRange(start='2024-01-01', end='2024-02-01')
        >>> resolve_range("all")
        DateRange(start=None, end=None)
    """
    if start_date:
        return DateRange(start=start_date, end=end_date)

    if not time_range or time_range == TimeRange.ALL:
        return DateRange()

    if now is None:
        now = datetime.now(timezone.utc)
    today = now.date().isoformat()

    if time_range in _TRAILING_DAYS:
        start = now - timedelta(days=_TRAILING_DAYS[time_range])
        return DateRange(start=start.date().isoformat(), end=today)
    if time_range == TimeRange.YEAR_TO_DATE:
        return DateRange(start=date(now.year, 1, 1).isoformat(), end=today)

    logger.debug("Unrecognized time range %r, using an unbounded range", time_range)
    return DateRange()


def month_label(month_key: Any) -> Optional[str]:
    """Format a ``YYYY-MM`` key as ``"Mon YYYY"``.

    Returns None if the key is missing or not a valid year-month.

    Examples:
        >>> month_label("2024-03")
        'Mar 2024'
        >>> month_label("unknown") is None
        True
    """
    if not isinstance(month_key, str) or not re.fullmatch(r"\d{4}-\d{2}", month_key):
        return None
    try:
        parsed = datetime.strptime(f"{month_key}-01", "%Y-%m-%d").date()
    except ValueError:
        return None
    return f"{MONTH_ABBREVIATIONS[parsed.month - 1]} {parsed.year}"
