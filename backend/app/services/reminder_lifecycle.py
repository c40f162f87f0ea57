"""Reminder status transitions.

pending -> sent | failed | cancelled. All three are terminal; a failed
reminder is never moved back to pending. Transitions are guarded in the
UPDATE itself so concurrent or repeated calls cannot double-transition.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.models.reminder import ReminderSchedule
from app.services.errors import InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PENDING = "pending"
SENT = "sent"
FAILED = "failed"
CANCELLED = "cancelled"

STATUSES = (PENDING, SENT, FAILED, CANCELLED)
TERMINAL_STATUSES = (SENT, FAILED, CANCELLED)


def _load_reminder(db: Session, reminder_id: str) -> ReminderSchedule:
    reminder = db.query(ReminderSchedule).filter(ReminderSchedule.id == reminder_id).first()
    if not reminder:
        raise NotFoundError(f"Reminder not found: {reminder_id}")
    return reminder


def _transition(db: Session, reminder_id: str, target_status: str, values: dict) -> ReminderSchedule:
    """Move a pending reminder to target_status.

    Raises NotFoundError if the reminder does not exist and InvalidStateError
    if it is no longer pending.
    """
    now = datetime.utcnow().isoformat()
    updated = db.query(ReminderSchedule).filter(
        ReminderSchedule.id == reminder_id,
        ReminderSchedule.status == PENDING,
    ).update(
        {"status": target_status, "updated_at": now, **values},
        synchronize_session=False,
    )
    db.commit()

    reminder = _load_reminder(db, reminder_id)
    db.refresh(reminder)
    if updated == 0:
        raise InvalidStateError(reminder_id, reminder.status, target_status)
    return reminder


def try_transition(
    db: Session,
    reminder_id: str,
    target_status: str,
    values: dict | None = None,
) -> tuple[ReminderSchedule, bool]:
    """Like _transition, but a rejected transition is a logged no-op.

    Returns the reminder and whether this call changed its status.
    """
    try:
        reminder = _transition(db, reminder_id, target_status, values or {})
    except InvalidStateError as e:
        logger.warning(f"Ignoring transition: {e}")
        return _load_reminder(db, reminder_id), False
    logger.info(f"Reminder {reminder_id} -> {target_status}")
    return reminder, True


def mark_sent(db: Session, reminder_id: str, delivery_id: str | None = None) -> ReminderSchedule:
    """Record a successful delivery. Repeated calls leave the first result intact."""
    reminder, _ = try_transition(db, reminder_id, SENT, {
        "sent_at": datetime.utcnow().isoformat(),
        "delivery_id": delivery_id,
    })
    return reminder


def mark_failed(db: Session, reminder_id: str, reason: str | None) -> ReminderSchedule:
    """Record a failed delivery with its reason."""
    reminder, _ = try_transition(db, reminder_id, FAILED, {
        "failed_reason": reason or "Unknown failure",
    })
    return reminder


def cancel_reminder(db: Session, reminder_id: str) -> ReminderSchedule:
    """Soft-delete a pending reminder (e.g. lease terminated early)."""
    reminder, _ = try_transition(db, reminder_id, CANCELLED)
    return reminder


def update_reminder_status(
    db: Session,
    reminder_id: str,
    status: str,
    delivery_id: str | None = None,
    failed_reason: str | None = None,
) -> ReminderSchedule:
    """Apply a status change requested through the API."""
    if status == SENT:
        return mark_sent(db, reminder_id, delivery_id)
    if status == FAILED:
        return mark_failed(db, reminder_id, failed_reason)
    if status == CANCELLED:
        return cancel_reminder(db, reminder_id)
    raise ValidationError(
        f"Invalid status '{status}'; expected one of {', '.join(TERMINAL_STATUSES)}"
    )
