"""Date parsing and date-range cutoffs."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from dota_scout.models.statistics import DateRangeSelection

EPOCH_ISO = "1970-01-01T00:00:00+00:00"

RANGE_DAYS = {"7days": 7, "30days": 30}


def parse_iso(value: object) -> Optional[datetime]:
    """Parse an ISO-8601 string (a trailing "Z" is accepted). Naive values are UTC."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_timestamp(value: str) -> Optional[float]:
    parsed = parse_iso(value)
    return parsed.timestamp() if parsed else None


def day_start(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo or timezone.utc)


def get_date_cutoffs(
    selection: DateRangeSelection, now: Optional[datetime] = None
) -> tuple[Optional[float], Optional[float]]:
    """Inclusive (start, end) cutoffs in epoch seconds for a date range.

    Rolling ranges start at the beginning of the day N days before today
    and end at 23:59:59.999 of yesterday. Custom ranges cover whole days.
    """
    if selection.type == "all":
        return None, None

    now = now or datetime.now(timezone.utc)
    today_start = day_start(now)

    if selection.type in RANGE_DAYS:
        start = today_start - timedelta(days=RANGE_DAYS[selection.type])
        end = today_start - timedelta(milliseconds=1)
        return float(int(start.timestamp())), float(int(end.timestamp()))

    start_cutoff = None
    end_cutoff = None
    if selection.custom_start:
        start_cutoff = float(int(_day_bound(selection.custom_start, time.min).timestamp()))
    if selection.custom_end:
        end_cutoff = float(int(_day_bound(selection.custom_end, time.max).timestamp()))
    return start_cutoff, end_cutoff


def _day_bound(day: date, at: time) -> datetime:
    return datetime.combine(day, at, tzinfo=timezone.utc)


def in_date_range(
    iso_date: str,
    selection: DateRangeSelection,
    now: Optional[datetime] = None,
    rolling: bool = False,
) -> bool:
    cutoffs = get_rolling_cutoffs if rolling else get_date_cutoffs
    start, end = cutoffs(selection, now)
    if start is None and end is None:
        return True
    moment = to_timestamp(iso_date)
    if moment is None:
        return False
    if start is not None and moment < start:
        return False
    if end is not None and moment > end:
        return False
    return True


def get_rolling_cutoffs(
    selection: DateRangeSelection, now: Optional[datetime] = None
) -> tuple[Optional[float], Optional[float]]:
    """Cutoffs for match-list filters: rolling ranges run from ``now`` minus N days with no end bound."""
    if selection.type in RANGE_DAYS:
        now = now or datetime.now(timezone.utc)
        return (now - timedelta(days=RANGE_DAYS[selection.type])).timestamp(), None
    return get_date_cutoffs(selection, now)
