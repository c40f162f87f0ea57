"""Reminder trigger API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.trigger import (
    TriggerListResponse,
    TriggerResponse,
    TriggerUpdate,
    TriggerUpsert,
)
from app.services.errors import NotFoundError, ValidationError
from app.services.trigger_registry import (
    deactivate_trigger,
    get_trigger,
    list_triggers,
    upsert_trigger,
)

router = APIRouter(prefix="/triggers", tags=["triggers"])


@router.get("", response_model=TriggerListResponse)
def get_triggers(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
):
    """List reminder triggers (active only unless include_inactive)."""
    triggers = list_triggers(db, include_inactive=include_inactive)
    return TriggerListResponse(
        triggers=[TriggerResponse.model_validate(t) for t in triggers],
        count=len(triggers),
    )


@router.get("/{name}", response_model=TriggerResponse)
def get_trigger_by_name(name: str, db: Session = Depends(get_db)):
    """Get a single trigger."""
    try:
        return TriggerResponse.model_validate(get_trigger(db, name))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=TriggerResponse, status_code=status.HTTP_201_CREATED)
def create_trigger(trigger_data: TriggerUpsert, db: Session = Depends(get_db)):
    """Create a trigger, replacing any trigger with the same name."""
    try:
        trigger = upsert_trigger(db, trigger_data.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return TriggerResponse.model_validate(trigger)


@router.put("/{name}", response_model=TriggerResponse)
def update_trigger(
    name: str,
    trigger_data: TriggerUpdate,
    db: Session = Depends(get_db),
):
    """Replace an existing trigger's definition."""
    try:
        get_trigger(db, name)
        trigger = upsert_trigger(db, {"name": name, **trigger_data.model_dump()})
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return TriggerResponse.model_validate(trigger)


@router.delete("/{name}", response_model=TriggerResponse)
def retire_trigger(name: str, db: Session = Depends(get_db)):
    """Deactivate a trigger. It is kept for audit and excluded from generation."""
    try:
        trigger = deactivate_trigger(db, name)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return TriggerResponse.model_validate(trigger)
