"""Cron entry point: generate this month's reminders and prepare today's messages."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_cron_secret
from app.schemas.reminder import CronResponse
from app.services.errors import StorageError
from app.services.message_renderer import bulk_build_delivery_payloads
from app.services.reminder_queries import get_due_reminders
from app.services.reminder_scheduler import generate_for_date
from app.services.retention import sweep_sent_reminders

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reminders", tags=["cron"])


@router.post("/cron", response_model=CronResponse, dependencies=[Depends(require_cron_secret)])
def run_reminder_cron(db: Session = Depends(get_db)):
    """Run generation for the current month, prepare today's payloads, sweep old reminders."""
    try:
        generated = generate_for_date(db)
    except StorageError as e:
        logger.error(f"Cron generation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": str(e), "partial": e.partial},
        )

    todays_reminders = get_due_reminders(db)
    messages = bulk_build_delivery_payloads(todays_reminders)
    cleanup = sweep_sent_reminders(db)

    logger.info(
        f"Cron run: generated={generated['generated']} due_today={len(todays_reminders)} "
        f"prepared={len(messages)} deleted={cleanup['deleted_count']}"
    )
    return CronResponse(
        generated=generated,
        todays_reminders=len(todays_reminders),
        messages=messages,
        cleanup=cleanup,
    )
