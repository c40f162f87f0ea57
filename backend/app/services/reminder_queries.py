"""Read-side queries over reminder schedules."""
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.models.reminder import ReminderSchedule
from app.services.errors import NotFoundError, ValidationError
from app.services.reminder_lifecycle import PENDING, STATUSES
from app.services.reminder_periods import TRIGGER_TYPES, parse_date


def _with_context(query):
    return query.options(
        joinedload(ReminderSchedule.lease),
        joinedload(ReminderSchedule.tenant),
        joinedload(ReminderSchedule.property),
    )


def _as_date(value: str | date | None, field: str) -> date:
    try:
        parsed = parse_date(value)
    except ValueError as e:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date") from e
    if parsed is None:
        raise ValidationError(f"{field} is required")
    return parsed


def get_reminder(db: Session, reminder_id: str) -> ReminderSchedule:
    """Get one reminder with its lease, tenant and property."""
    reminder = _with_context(db.query(ReminderSchedule)).filter(
        ReminderSchedule.id == reminder_id,
    ).first()
    if not reminder:
        raise NotFoundError(f"Reminder not found: {reminder_id}")
    return reminder


def get_due_reminders(db: Session, on_date: date | None = None) -> list[ReminderSchedule]:
    """Pending reminders firing on a date (default today), by priority then age."""
    if on_date is None:
        on_date = date.today()
    return (
        _with_context(db.query(ReminderSchedule))
        .filter(
            ReminderSchedule.trigger_date == on_date.isoformat(),
            ReminderSchedule.status == PENDING,
        )
        .order_by(ReminderSchedule.priority.asc(), ReminderSchedule.created_at.asc())
        .all()
    )


def get_reminders_by_range(
    db: Session,
    start_date: str | date,
    end_date: str | date,
    status: str | None = None,
    reminder_type: str | None = None,
) -> list[ReminderSchedule]:
    """Reminders with start_date <= trigger_date <= end_date, optionally filtered."""
    start = _as_date(start_date, "start_date")
    end = _as_date(end_date, "end_date")
    if start > end:
        raise ValidationError("start_date must not be after end_date")
    if status is not None and status not in STATUSES:
        raise ValidationError(f"Invalid status '{status}'")
    if reminder_type is not None and reminder_type not in TRIGGER_TYPES:
        raise ValidationError(f"Invalid reminder type '{reminder_type}'")

    query = _with_context(db.query(ReminderSchedule)).filter(
        ReminderSchedule.trigger_date >= start.isoformat(),
        ReminderSchedule.trigger_date <= end.isoformat(),
    )
    if status:
        query = query.filter(ReminderSchedule.status == status)
    if reminder_type:
        query = query.filter(ReminderSchedule.reminder_type == reminder_type)

    return query.order_by(
        ReminderSchedule.trigger_date.asc(),
        ReminderSchedule.priority.asc(),
        ReminderSchedule.created_at.asc(),
    ).all()


def _count_by(db: Session, column, *filters) -> list[tuple[str, int]]:
    rows = (
        db.query(column, func.count(ReminderSchedule.id))
        .filter(*filters)
        .group_by(column)
        .order_by(column)
        .all()
    )
    return [(key, count) for key, count in rows]


def get_reminder_statistics(db: Session, today: date | None = None) -> dict:
    """Aggregate reminder counts overall, for today, and per reminder type."""
    if today is None:
        today = date.today()

    by_status = _count_by(db, ReminderSchedule.status)
    today_counts = _count_by(
        db,
        ReminderSchedule.status,
        ReminderSchedule.trigger_date == today.isoformat(),
    )
    by_type = _count_by(db, ReminderSchedule.reminder_type)

    return {
        "total": sum(count for _, count in by_status),
        "by_status": [{"status": status, "count": count} for status, count in by_status],
        "today": [{"status": status, "count": count} for status, count in today_counts],
        "by_type": [{"type": reminder_type, "count": count} for reminder_type, count in by_type],
    }
