"""Hand due reminders to an outbound messaging collaborator and record the outcome."""
import logging
from datetime import date, datetime
from typing import Protocol

from sqlalchemy.orm import Session

from app.services.errors import RenderError, TransportError
from app.services.message_renderer import build_delivery_payload
from app.services.reminder_lifecycle import FAILED, SENT, try_transition
from app.services.reminder_queries import get_due_reminders

logger = logging.getLogger(__name__)


class MessageSender(Protocol):
    """Outbound transport (WhatsApp, SMS, email).

    ``send`` returns the provider's delivery id or raises TransportError.
    """

    def send(self, payload: dict) -> str | None:
        ...


def dispatch_due_reminders(
    db: Session,
    sender: MessageSender,
    on_date: date | None = None,
) -> dict:
    """Send every pending reminder due on a date. Call this from a scheduler/cron.

    Reminders moved out of pending by a concurrent run are counted as skipped.
    """
    reminders = get_due_reminders(db, on_date)

    sent = 0
    failed = 0
    skipped = 0

    for reminder in reminders:
        reminder_id = reminder.id
        try:
            payload = build_delivery_payload(reminder)
            delivery_id = sender.send(payload)
        except (RenderError, TransportError) as e:
            logger.warning(f"Delivery failed for reminder {reminder_id}: {e}")
            _, changed = try_transition(db, reminder_id, FAILED, {"failed_reason": str(e)})
            if changed:
                failed += 1
            else:
                skipped += 1
            continue

        _, changed = try_transition(db, reminder_id, SENT, {
            "sent_at": datetime.utcnow().isoformat(),
            "delivery_id": delivery_id,
        })
        if changed:
            sent += 1
        else:
            skipped += 1

    logger.info(f"Dispatched reminders: sent={sent} failed={failed} skipped={skipped}")
    return {"sent": sent, "failed": failed, "skipped": skipped}
