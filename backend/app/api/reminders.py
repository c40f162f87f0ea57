"""Reminder schedule API endpoints."""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.reminder import (
    CleanupResponse,
    DeliveryPayload,
    GenerateRequest,
    GenerationResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderStatisticsResponse,
    ReminderStatusUpdate,
)
from app.services.errors import NotFoundError, RenderError, StorageError, ValidationError
from app.services.message_renderer import build_delivery_payload
from app.services.reminder_lifecycle import cancel_reminder, update_reminder_status
from app.services.reminder_queries import (
    get_due_reminders,
    get_reminder,
    get_reminder_statistics,
    get_reminders_by_range,
)
from app.services.reminder_scheduler import generate_for_date
from app.services.retention import sweep_sent_reminders

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.post("/generate", response_model=GenerationResponse)
def generate_reminders(
    request: GenerateRequest | None = None,
    db: Session = Depends(get_db),
):
    """Generate reminder schedules for the month of target_date (default: today)."""
    target_date = request.target_date if request else None
    try:
        result = generate_for_date(db, target_date)
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": str(e), "partial": e.partial},
        )
    return GenerationResponse(**result)


@router.get("/today", response_model=ReminderListResponse)
def get_todays_reminders(db: Session = Depends(get_db)):
    """Pending reminders due today, with lease, tenant and property."""
    reminders = get_due_reminders(db)
    return ReminderListResponse(
        reminders=[ReminderResponse.model_validate(r) for r in reminders],
        count=len(reminders),
    )


@router.get("/date-range", response_model=ReminderListResponse)
def get_reminders_in_range(
    start_date: date = Query(..., description="Start date (YYYY-MM-DD), inclusive"),
    end_date: date = Query(..., description="End date (YYYY-MM-DD), inclusive"),
    reminder_status: str | None = Query(None, alias="status", description="Filter by status"),
    reminder_type: str | None = Query(None, alias="type", description="Filter by reminder type"),
    db: Session = Depends(get_db),
):
    """Reminders whose trigger_date lies within [start_date, end_date]."""
    try:
        reminders = get_reminders_by_range(
            db,
            start_date,
            end_date,
            status=reminder_status,
            reminder_type=reminder_type,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ReminderListResponse(
        reminders=[ReminderResponse.model_validate(r) for r in reminders],
        count=len(reminders),
        filters={
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "status": reminder_status,
            "type": reminder_type,
        },
    )


@router.get("/statistics", response_model=ReminderStatisticsResponse)
def get_statistics(db: Session = Depends(get_db)):
    """Reminder counts by status, for today, and by type."""
    return ReminderStatisticsResponse(**get_reminder_statistics(db))


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_reminders(
    retention_days: int | None = Query(None, ge=1, description="Defaults to REMINDER_RETENTION_DAYS"),
    db: Session = Depends(get_db),
):
    """Delete sent reminders older than the retention window."""
    return CleanupResponse(**sweep_sent_reminders(db, retention_days))


@router.get("/{reminder_id}", response_model=ReminderResponse)
def get_reminder_by_id(reminder_id: str, db: Session = Depends(get_db)):
    """Get a reminder with its lease, tenant and property."""
    try:
        return ReminderResponse.model_validate(get_reminder(db, reminder_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{reminder_id}/payload", response_model=DeliveryPayload)
def get_reminder_payload(reminder_id: str, db: Session = Depends(get_db)):
    """Get the message payload for the messaging collaborator."""
    try:
        reminder = get_reminder(db, reminder_id)
        return DeliveryPayload(**build_delivery_payload(reminder))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RenderError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.put("/{reminder_id}", response_model=ReminderResponse)
def update_reminder(
    reminder_id: str,
    update: ReminderStatusUpdate,
    db: Session = Depends(get_db),
):
    """Record delivery outcome or cancel a reminder.

    Only pending reminders change; updating a sent, failed or cancelled
    reminder returns it unchanged.
    """
    try:
        update_reminder_status(
            db,
            reminder_id,
            update.status,
            delivery_id=update.delivery_id,
            failed_reason=update.failed_reason,
        )
        return ReminderResponse.model_validate(get_reminder(db, reminder_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{reminder_id}", response_model=ReminderResponse)
def delete_reminder(reminder_id: str, db: Session = Depends(get_db)):
    """Cancel a reminder (soft delete)."""
    try:
        cancel_reminder(db, reminder_id)
        return ReminderResponse.model_validate(get_reminder(db, reminder_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
