"""Service to seed default reminder triggers from a YAML file."""
import logging
from pathlib import Path

import yaml
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.trigger import ReminderTrigger
from app.services.errors import ValidationError
from app.services.trigger_registry import validate_trigger_data

logger = logging.getLogger(__name__)
settings = get_settings()

DEFAULT_TRIGGERS_FILE = "triggers.yaml"


def load_default_triggers(db: Session, path: Path | None = None) -> list[ReminderTrigger]:
    """Insert default triggers that do not exist yet.

    Existing triggers are left untouched so operator edits survive restarts.
    Returns list of newly created ReminderTrigger objects.
    """
    yaml_path = path or settings.configs_dir / DEFAULT_TRIGGERS_FILE
    if not yaml_path.exists():
        logger.warning(f"Trigger config file not found: {yaml_path}")
        return []

    with open(yaml_path, "r") as f:
        data = yaml.safe_load(f) or {}

    created = []
    for entry in data.get("triggers", []):
        try:
            trigger = _load_single_trigger(db, entry)
            if trigger:
                created.append(trigger)
        except ValidationError as e:
            logger.error(f"Invalid trigger in {yaml_path}: {e}")

    db.commit()
    logger.info(f"Seeded {len(created)} default reminder triggers")
    return created


def _load_single_trigger(db: Session, entry: dict) -> ReminderTrigger | None:
    """Create one trigger from a YAML entry unless it already exists."""
    values = validate_trigger_data(entry)

    existing = db.query(ReminderTrigger).filter(ReminderTrigger.name == values["name"]).first()
    if existing:
        logger.debug(f"Trigger already present: {values['name']}")
        return None

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
    logger.debug(f"Created trigger: {values['name']}")
    return trigger
