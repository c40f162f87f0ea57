"""Anchor date and trigger date calculation for reminders."""
import calendar
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

RENT_DUE = "rent_due"
LEASE_RENEWAL = "lease_renewal"
MAINTENANCE = "maintenance"
INSPECTION = "inspection"

TRIGGER_TYPES = (RENT_DUE, LEASE_RENEWAL, MAINTENANCE, INSPECTION)

# Anchors that recur every month; their shifted date may land outside the target month.
MONTHLY_ANCHORS = {RENT_DUE, MAINTENANCE}
# One-off anchors kept in the month the anchor itself falls in (the lease end).
ANCHOR_MONTH_ANCHORS = {LEASE_RENEWAL}
# One-off anchors kept in the month the trigger date falls in.
TRIGGER_MONTH_ANCHORS = {INSPECTION}


def parse_date(value: str | date | None) -> date | None:
    """Parse a YYYY-MM-DD string (or pass through a date)."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """Return the first and last day of a month."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    start = date(year, month, 1)
    end = (start + relativedelta(months=1)) - timedelta(days=1)
    return start, end


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day to the last valid day of the month.

    A rent due on the 31st falls on 28 or 29 February.
    """
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, max(1, min(day, last_day)))


def _anniversaries(start: date, years: list[int]) -> list[date]:
    return [clamp_day(year, start.month, start.day) for year in years]


def anchor_dates(
    trigger_type: str,
    month: int,
    year: int,
    due_day: int | None,
    start_date: date,
    end_date: date,
) -> list[date]:
    """Candidate anchor dates for a trigger type and lease in a target month.

    Args:
        trigger_type: rent_due, lease_renewal, maintenance, inspection
        month, year: The target generation month
        due_day: Day of month rent falls due (rent_due only)
        start_date, end_date: Tenancy period

    Returns:
        Anchors that lie inside the tenancy period
    """
    month_start, _ = month_bounds(month, year)

    if trigger_type == RENT_DUE:
        if due_day is None:
            raise ValueError("Lease has no due date")
        candidates = [clamp_day(year, month, due_day)]

    elif trigger_type == LEASE_RENEWAL:
        candidates = [end_date]

    elif trigger_type == MAINTENANCE:
        candidates = [month_start]

    elif trigger_type == INSPECTION:
        # Annual inspection on the lease anniversary; next year's anniversary
        # may be reached by a large negative offset.
        candidates = [
            anniversary
            for anniversary in _anniversaries(start_date, [year, year + 1])
            if anniversary != start_date
        ]

    else:
        raise ValueError(f"Unknown trigger type: {trigger_type}")

    return [anchor for anchor in candidates if start_date <= anchor <= end_date]


def shift(anchor: date, day_offset: int) -> date:
    """Apply a trigger's day offset to an anchor date."""
    return anchor + timedelta(days=day_offset)


def trigger_dates_for_month(
    trigger_type: str,
    day_offset: int,
    month: int,
    year: int,
    due_day: int | None,
    start_date: date,
    end_date: date,
) -> list[tuple[date, date]]:
    """Return (anchor_date, trigger_date) pairs to generate for a target month."""
    month_start, month_end = month_bounds(month, year)
    pairs = []
    for anchor in anchor_dates(trigger_type, month, year, due_day, start_date, end_date):
        trigger_date = shift(anchor, day_offset)
        if trigger_type in ANCHOR_MONTH_ANCHORS and not (month_start <= anchor <= month_end):
            continue
        if trigger_type in TRIGGER_MONTH_ANCHORS and not (month_start <= trigger_date <= month_end):
            continue
        pairs.append((anchor, trigger_date))
    return pairs


def retention_cutoff(retention_days: int, today: date | None = None) -> date:
    """Dates strictly before the cutoff are past the retention window."""
    if today is None:
        today = date.today()
    return today - timedelta(days=retention_days)
