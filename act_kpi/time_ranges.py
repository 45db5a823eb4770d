from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from .models import DateRange, TimeRange

# Display order used by the dashboard and by refresh().
TIME_RANGES: Tuple[str, ...] = ("30d", "14d", "7d", "3d", "24h")

TIME_RANGE_DAYS: Dict[str, int] = {
    "30d": 30,
    "14d": 14,
    "7d": 7,
    "3d": 3,
    "24h": 1,
}

TIME_RANGE_LABELS: Dict[str, str] = {
    "30d": "30 days",
    "14d": "14 days",
    "7d": "7 days",
    "3d": "Last 3 days",
    "24h": "Last 24h",
}


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def today_in(tz_name: str) -> date:
    """Calendar date right now in an IANA timezone (e.g. "Europe/Dublin")."""
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_iso_date(s: str) -> date:
    # expects YYYY-MM-DD
    return datetime.strptime(s, "%Y-%m-%d").date()


def validate_time_range(time_range: str) -> TimeRange:
    if time_range not in TIME_RANGE_DAYS:
        raise ValueError(
            f"Unknown time range {time_range!r}. Must be one of: {', '.join(TIME_RANGES)}"
        )
    return time_range


def get_date_range(time_range: str, today: Optional[date] = None) -> DateRange:
    """
    Window for a time range: the N inclusive calendar days ending on `today`.

    >>> get_date_range("7d", today=date(2025, 3, 10))
    DateRange(start_date=datetime.date(2025, 3, 4), end_date=datetime.date(2025, 3, 10))
    """
    days = TIME_RANGE_DAYS[validate_time_range(time_range)]
    end = today or today_utc()
    return DateRange(start_date=end - timedelta(days=days - 1), end_date=end)


def previous_date_range(current: DateRange) -> DateRange:
    """Window of identical length ending the day before `current` starts."""
    prev_end = current.start_date - timedelta(days=1)
    return DateRange(
        start_date=prev_end - timedelta(days=current.days - 1),
        end_date=prev_end,
    )


def days_in_range(date_range: DateRange) -> List[date]:
    out: List[date] = []
    d = date_range.start_date
    while d <= date_range.end_date:
        out.append(d)
        d = d + timedelta(days=1)
    return out
