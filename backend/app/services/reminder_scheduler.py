"""Reminder schedule generation for active leases.

Generation is idempotent: every (lease, trigger, trigger_date) instance is
stored at most once, so the same month can be generated any number of times
(cron re-runs, manual triggers, retries) and only fills in gaps.
"""
import json
import logging
import uuid
from datetime import date

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.lease import Lease
from app.models.reminder import ReminderSchedule
from app.models.trigger import ReminderTrigger
from app.services.errors import ConflictError, RenderError, StorageError, ValidationError
from app.services.message_renderer import render
from app.services.reminder_periods import month_bounds, parse_date, trigger_dates_for_month
from app.services.trigger_registry import list_active_triggers

logger = logging.getLogger(__name__)

UNIQUE_KEY = ["lease_id", "trigger_name", "trigger_date"]


def _lease_terms(lease: Lease, trigger_type: str) -> tuple[date, date, int | None]:
    """Validate the lease fields generation depends on."""
    try:
        start_date = parse_date(lease.start_date)
        end_date = parse_date(lease.end_date)
    except ValueError as e:
        raise ValidationError(f"Lease {lease.id} has an invalid tenancy date: {e}") from e

    if start_date is None or end_date is None:
        raise ValidationError(f"Lease {lease.id} is missing start_date or end_date")
    if end_date < start_date:
        raise ValidationError(f"Lease {lease.id} ends before it starts")

    due_day = lease.due_date
    if trigger_type == "rent_due":
        if due_day is None or not 1 <= int(due_day) <= 31:
            raise ValidationError(f"Lease {lease.id} has an invalid due_date: {due_day}")
        due_day = int(due_day)

    return start_date, end_date, due_day


def _trigger_snapshot(trigger: ReminderTrigger) -> dict:
    return {
        "trigger_id": trigger.id,
        "name": trigger.name,
        "trigger_type": trigger.trigger_type,
        "day_offset": trigger.day_offset,
        "priority": trigger.priority,
        "message_template": trigger.message_template,
    }


def _reminder_exists(db: Session, lease_id: str, trigger_name: str, trigger_date: date) -> bool:
    return db.query(ReminderSchedule.id).filter(
        ReminderSchedule.lease_id == lease_id,
        ReminderSchedule.trigger_name == trigger_name,
        ReminderSchedule.trigger_date == trigger_date.isoformat(),
    ).first() is not None


def _insert_if_absent(db: Session, values: dict) -> None:
    """Insert a reminder row, ignoring a conflict on the natural key.

    Raises ConflictError when another writer already stored the same
    (lease_id, trigger_name, trigger_date).
    """
    dialect = db.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        insert = sqlite_insert if dialect == "sqlite" else pg_insert
        stmt = (
            insert(ReminderSchedule.__table__)
            .values({getattr(ReminderSchedule, key): value for key, value in values.items()})
            .on_conflict_do_nothing(index_elements=UNIQUE_KEY)
        )
        result = db.execute(stmt)
        if result.rowcount == 0:
            raise ConflictError(f"Reminder already exists for {values['lease_id']}/{values['trigger_name']}/{values['trigger_date']}")
        return

    # Other dialects: rely on the unique constraint inside a savepoint
    try:
        with db.begin_nested():
            db.add(ReminderSchedule(**values))
    except IntegrityError as e:
        raise ConflictError(str(e.orig)) from e


def _generate_pair(
    db: Session,
    lease: Lease,
    trigger: ReminderTrigger,
    month: int,
    year: int,
) -> tuple[int, int]:
    """Create the missing reminders for one (lease, trigger) pair.

    Returns (generated, skipped).
    """
    start_date, end_date, due_day = _lease_terms(lease, trigger.trigger_type)

    generated = 0
    skipped = 0
    try:
        dates = trigger_dates_for_month(
            trigger.trigger_type,
            trigger.day_offset,
            month,
            year,
            due_day,
            start_date,
            end_date,
        )
    except ValueError as e:
        raise ValidationError(f"Trigger {trigger.name}: {e}") from e

    for anchor_date, trigger_date in dates:
        if _reminder_exists(db, lease.id, trigger.name, trigger_date):
            skipped += 1
            continue

        rendered = render(trigger, lease, lease.tenant, lease.property, trigger_date, anchor_date)

        values = {
            "id": str(uuid.uuid4()),
            "lease_id": lease.id,
            "tenant_id": lease.tenant_id,
            "property_id": lease.property_id,
            "trigger_name": trigger.name,
            "reminder_type": trigger.trigger_type,
            "priority": trigger.priority,
            "trigger_date": trigger_date.isoformat(),
            "status": "pending",
            "message_template": trigger.message_template,
            "personalized_message": rendered["personalized_message"],
            "trigger_config": json.dumps(_trigger_snapshot(trigger)),
            "reminder_metadata": json.dumps(rendered["metadata"]),
        }
        try:
            _insert_if_absent(db, values)
        except ConflictError:
            # A concurrent run stored it first
            skipped += 1
            continue
        generated += 1

    return generated, skipped


def generate_reminder_schedules(db: Session, month: int, year: int) -> dict:
    """Generate reminder schedules for every active lease in a target month.

    Per-pair problems (missing tenant/property, template rendering, bad lease
    fields) are counted as errors and do not stop the batch. A store failure
    raises StorageError carrying the counts accumulated so far.

    Returns dict with counts: generated, skipped, errors, month, year.
    """
    result = {"generated": 0, "skipped": 0, "errors": 0, "month": month, "year": year}

    try:
        month_start, month_end = month_bounds(month, year)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    try:
        triggers = list_active_triggers(db)
        leases = db.query(Lease).filter(
            Lease.status == "active",
            Lease.start_date <= month_end.isoformat(),
            Lease.end_date >= month_start.isoformat(),
        ).order_by(Lease.start_date, Lease.id).all()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(f"Failed to load triggers or leases: {e}", partial=result) from e

    logger.info(
        f"Generating reminders for {year}-{month:02d}: "
        f"{len(leases)} leases x {len(triggers)} triggers"
    )

    for lease in leases:
        lease_id = lease.id
        for trigger in triggers:
            trigger_name = trigger.name
            try:
                generated, skipped = _generate_pair(db, lease, trigger, month, year)
                db.commit()
            except (RenderError, ValidationError) as e:
                db.rollback()
                result["errors"] += 1
                logger.warning(f"Reminder generation failed for lease {lease_id}, trigger {trigger_name}: {e}")
                continue
            except IntegrityError as e:
                db.rollback()
                result["errors"] += 1
                logger.warning(f"Integrity error for lease {lease_id}, trigger {trigger_name}: {e.orig}")
                continue
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Storage failure during reminder generation: {e}")
                raise StorageError(f"Reminder generation aborted: {e}", partial=result) from e
            except Exception as e:
                db.rollback()
                result["errors"] += 1
                logger.exception(f"Unexpected error for lease {lease_id}, trigger {trigger_name}: {e}")
                continue

            result["generated"] += generated
            result["skipped"] += skipped

    logger.info(
        f"Reminder generation for {year}-{month:02d} done: "
        f"generated={result['generated']} skipped={result['skipped']} errors={result['errors']}"
    )
    return result


def generate_for_date(db: Session, target_date: date | None = None) -> dict:
    """Generate reminders for the month containing target_date (default today)."""
    if target_date is None:
        target_date = date.today()
    return generate_reminder_schedules(db, target_date.month, target_date.year)
