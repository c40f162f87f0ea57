"""Retention sweep for delivered reminders."""
import logging
from datetime import date

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.reminder import ReminderSchedule
from app.services.errors import ValidationError
from app.services.reminder_lifecycle import SENT
from app.services.reminder_periods import retention_cutoff

logger = logging.getLogger(__name__)


def sweep_sent_reminders(
    db: Session,
    retention_days: int | None = None,
    today: date | None = None,
) -> dict:
    """Delete sent reminders whose trigger_date is older than the retention window.

    Pending, failed and cancelled reminders are never deleted.
    """
    if retention_days is None:
        retention_days = get_settings().reminder_retention_days
    if retention_days < 1:
        raise ValidationError("retention_days must be at least 1")

    cutoff = retention_cutoff(retention_days, today)
    deleted = db.query(ReminderSchedule).filter(
        ReminderSchedule.status == SENT,
        ReminderSchedule.trigger_date < cutoff.isoformat(),
    ).delete(synchronize_session=False)
    db.commit()

    logger.info(f"Deleted {deleted} sent reminders older than {cutoff.isoformat()}")
    return {"deleted_count": deleted, "cutoff_date": cutoff.isoformat()}
