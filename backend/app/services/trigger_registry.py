"""Trigger registry: named reminder rules used by schedule generation."""
import logging

from sqlalchemy.orm import Session

from app.models.trigger import ReminderTrigger
from app.services.errors import NotFoundError, ValidationError
from app.services.message_renderer import validate_template
from app.services.reminder_periods import TRIGGER_TYPES

logger = logging.getLogger(__name__)


def validate_trigger_data(data: dict) -> dict:
    """Validate and normalize a trigger definition.

    Raises ValidationError if name, type, offset, template or priority is invalid.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Trigger name is required")

    trigger_type = data.get("trigger_type")
    if trigger_type not in TRIGGER_TYPES:
        raise ValidationError(
            f"Invalid trigger_type '{trigger_type}'; expected one of {', '.join(TRIGGER_TYPES)}"
        )

    day_offset = data.get("day_offset")
    if isinstance(day_offset, bool) or not isinstance(day_offset, int):
        raise ValidationError("day_offset must be an integer")

    priority = data.get("priority", 100)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise ValidationError("priority must be an integer")

    template = validate_template(data.get("message_template"))

    return {
        "name": name,
        "trigger_type": trigger_type,
        "day_offset": day_offset,
        "message_template": template,
        "priority": priority,
        "is_active": bool(data.get("is_active", True)),
        "description": data.get("description"),
    }


def list_active_triggers(db: Session) -> list[ReminderTrigger]:
    """Active triggers in processing order (priority ascending)."""
    return (
        db.query(ReminderTrigger)
        .filter(ReminderTrigger.is_active == 1)
        .order_by(ReminderTrigger.priority.asc(), ReminderTrigger.name.asc())
        .all()
    )


def list_triggers(db: Session, include_inactive: bool = False) -> list[ReminderTrigger]:
    """List triggers; inactive ones only when asked for."""
    if not include_inactive:
        return list_active_triggers(db)
    return (
        db.query(ReminderTrigger)
        .order_by(ReminderTrigger.priority.asc(), ReminderTrigger.name.asc())
        .all()
    )


def get_trigger(db: Session, name: str) -> ReminderTrigger:
    """Get a trigger by name."""
    trigger = db.query(ReminderTrigger).filter(ReminderTrigger.name == name).first()
    if not trigger:
        raise NotFoundError(f"Trigger not found: {name}")
    return trigger


def upsert_trigger(db: Session, data: dict) -> ReminderTrigger:
    """Create a trigger or replace the one with the same name."""
    values = validate_trigger_data(data)

    trigger = db.query(ReminderTrigger).filter(ReminderTrigger.name == values["name"]).first()
    if trigger:
        trigger.trigger_type = values["trigger_type"]
        trigger.day_offset = values["day_offset"]
        trigger.message_template = values["message_template"]
        trigger.priority = values["priority"]
        trigger.is_active = 1 if values["is_active"] else 0
        trigger.description = values["description"]
        logger.info(f"Updated reminder trigger: {trigger.name}")
    else:
        trigger = ReminderTrigger(
            name=values["name"],
            trigger_type=values["trigger_type"],
            day_offset=values["day_offset"],
            message_template=values["message_template"],
            priority=values["priority"],
            is_active=1 if values["is_active"] else 0,
            description=values["description"],
        )
        db.add(trigger)
        logger.info(f"Created reminder trigger: {trigger.name}")

    db.commit()
    db.refresh(trigger)
    return trigger


def deactivate_trigger(db: Session, name: str) -> ReminderTrigger:
    """Retire a trigger; it is kept for audit but excluded from generation."""
    trigger = get_trigger(db, name)
    trigger.is_active = 0
    db.commit()
    db.refresh(trigger)
    logger.info(f"Deactivated reminder trigger: {name}")
    return trigger
