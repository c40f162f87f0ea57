import json
import os
import sys

import pytest
from sqlalchemy import func
from sqlalchemy.exc import OperationalError

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.models.reminder import ReminderSchedule
from app.models.trigger import ReminderTrigger
from app.services import reminder_scheduler
from app.services.errors import ConflictError, StorageError
from app.services.reminder_scheduler import _insert_if_absent, generate_reminder_schedules
from app.services.trigger_registry import deactivate_trigger, upsert_trigger


def _trigger_dates(db, lease_id):
    rows = (
        db.query(ReminderSchedule)
        .filter(ReminderSchedule.lease_id == lease_id)
        .order_by(ReminderSchedule.trigger_date)
        .all()
    )
    return [(r.trigger_name, r.trigger_date) for r in rows]


def test_generates_default_reminders_for_march(db, default_triggers, make_lease):
    lease = make_lease(due_date=5, rent_amount=50000)

    result = generate_reminder_schedules(db, 3, 2024)

    assert result == {"generated": 3, "skipped": 0, "errors": 0, "month": 3, "year": 2024}
    assert _trigger_dates(db, lease.id) == [
        ("rent_due_3_days_before", "2024-03-02"),
        ("rent_due_on_due_date", "2024-03-05"),
        ("rent_due_2_days_overdue", "2024-03-07"),
    ]


def test_generated_reminder_snapshots_lease_context(db, default_triggers, make_lease):
    lease = make_lease(tenant_name="Jane Wanjiku", property_name="Riverside Flats")

    generate_reminder_schedules(db, 3, 2024)

    reminder = db.query(ReminderSchedule).filter(
        ReminderSchedule.trigger_name == "rent_due_on_due_date",
    ).one()
    assert reminder.status == "pending"
    assert reminder.reminder_type == "rent_due"
    assert reminder.tenant_id == lease.tenant_id
    assert reminder.property_id == lease.property_id
    assert "Jane Wanjiku" in reminder.personalized_message
    assert "KES 50,000" in reminder.personalized_message
    assert "Riverside Flats" in reminder.personalized_message

    metadata = json.loads(reminder.reminder_metadata)
    assert metadata["due_date"] == "5 Mar 2024"
    assert metadata["rent_amount"] == 50000

    config = json.loads(reminder.trigger_config)
    assert config["day_offset"] == 0
    assert config["name"] == "rent_due_on_due_date"

    # Later tenant edits do not rewrite generated reminders
    lease.tenant.name = "Someone Else"
    db.commit()
    generate_reminder_schedules(db, 3, 2024)
    db.refresh(reminder)
    assert "Jane Wanjiku" in reminder.personalized_message


def test_generation_is_idempotent(db, default_triggers, make_lease):
    make_lease()
    make_lease(due_date=31)

    first = generate_reminder_schedules(db, 3, 2024)
    second = generate_reminder_schedules(db, 3, 2024)

    assert first["generated"] == 6
    assert second["generated"] == 0
    assert second["skipped"] == first["generated"]
    assert db.query(ReminderSchedule).count() == 6


def test_no_duplicate_natural_keys(db, default_triggers, make_lease):
    make_lease()
    for _ in range(3):
        generate_reminder_schedules(db, 3, 2024)

    duplicates = (
        db.query(
            ReminderSchedule.lease_id,
            ReminderSchedule.trigger_name,
            ReminderSchedule.trigger_date,
            func.count(ReminderSchedule.id),
        )
        .group_by(
            ReminderSchedule.lease_id,
            ReminderSchedule.trigger_name,
            ReminderSchedule.trigger_date,
        )
        .having(func.count(ReminderSchedule.id) > 1)
        .all()
    )
    assert duplicates == []


def test_generation_fills_gaps_after_partial_run(db, default_triggers, make_lease):
    lease = make_lease()
    generate_reminder_schedules(db, 3, 2024)

    db.query(ReminderSchedule).filter(
        ReminderSchedule.trigger_name == "rent_due_2_days_overdue",
    ).delete()
    db.commit()

    result = generate_reminder_schedules(db, 3, 2024)

    assert result["generated"] == 1
    assert result["skipped"] == 2
    assert len(_trigger_dates(db, lease.id)) == 3


def test_render_failure_does_not_abort_batch(db, default_triggers, make_lease):
    broken = make_lease(tenant_name=None)
    healthy = make_lease(tenant_name="Grace Akinyi")

    result = generate_reminder_schedules(db, 3, 2024)

    assert result["errors"] >= 1
    assert result["generated"] == 3
    assert _trigger_dates(db, broken.id) == []
    assert len(_trigger_dates(db, healthy.id)) == 3


def test_lease_with_invalid_due_date_is_counted_as_error(db, default_triggers, make_lease):
    make_lease(due_date=0)

    result = generate_reminder_schedules(db, 3, 2024)

    assert result["generated"] == 0
    assert result["errors"] == 3


def test_lease_renewal_generated_in_its_month(db, default_triggers, make_lease):
    lease = make_lease()

    result = generate_reminder_schedules(db, 12, 2024)

    assert result["generated"] == 4
    assert ("lease_renewal_30_days_before", "2024-12-01") in _trigger_dates(db, lease.id)


def test_inactive_leases_and_triggers_are_excluded(db, default_triggers, make_lease):
    make_lease(status="terminated")
    make_lease(start_date="2023-01-01", end_date="2023-12-31")
    active = make_lease()
    deactivate_trigger(db, "rent_due_2_days_overdue")

    result = generate_reminder_schedules(db, 3, 2024)

    assert result["generated"] == 2
    assert [name for name, _ in _trigger_dates(db, active.id)] == [
        "rent_due_3_days_before",
        "rent_due_on_due_date",
    ]


def test_insert_if_absent_reports_conflict(db, make_lease):
    lease = make_lease()
    values = {
        "id": "11111111-1111-1111-1111-111111111111",
        "lease_id": lease.id,
        "tenant_id": lease.tenant_id,
        "property_id": lease.property_id,
        "trigger_name": "rent_due_on_due_date",
        "reminder_type": "rent_due",
        "priority": 20,
        "trigger_date": "2024-03-05",
        "status": "pending",
        "message_template": "Hi {tenant_name}",
        "personalized_message": "Hi John Doe",
        "trigger_config": "{}",
        "reminder_metadata": "{}",
    }
    _insert_if_absent(db, values)
    db.commit()

    with pytest.raises(ConflictError):
        _insert_if_absent(db, {**values, "id": "22222222-2222-2222-2222-222222222222"})
    db.rollback()

    assert db.query(ReminderSchedule).count() == 1


def test_concurrent_insert_is_counted_as_skip(db, default_triggers, make_lease, monkeypatch):
    make_lease()
    monkeypatch.setattr(reminder_scheduler, "_reminder_exists", lambda *args: False)

    generate_reminder_schedules(db, 3, 2024)
    result = generate_reminder_schedules(db, 3, 2024)

    assert result == {"generated": 0, "skipped": 3, "errors": 0, "month": 3, "year": 2024}


def test_storage_failure_raises_with_partial_counts(db, default_triggers, make_lease, monkeypatch):
    make_lease()

    def broken_triggers(_db):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(reminder_scheduler, "list_active_triggers", broken_triggers)

    with pytest.raises(StorageError) as exc_info:
        generate_reminder_schedules(db, 3, 2024)

    assert exc_info.value.partial == {"generated": 0, "skipped": 0, "errors": 0, "month": 3, "year": 2024}


def test_trigger_with_unknown_type_is_counted_as_error(db, default_triggers, make_lease):
    db.add(ReminderTrigger(
        name="payment_followup",
        trigger_type="payment_followup",
        day_offset=5,
        message_template="Hi {tenant_name}, we have not received your rent.",
        priority=90,
        is_active=1,
    ))
    db.commit()
    lease = make_lease()

    result = generate_reminder_schedules(db, 3, 2024)

    assert result["errors"] == 1
    assert result["generated"] == 3
    assert len(_trigger_dates(db, lease.id)) == 3


def test_timestamped_lease_end_date_does_not_abort_batch(db, default_triggers, make_lease):
    stamped = make_lease(end_date="2024-12-31T00:00:00")
    healthy = make_lease(tenant_name="Grace Akinyi")

    result = generate_reminder_schedules(db, 3, 2024)

    assert result["errors"] == 0
    assert result["generated"] == 6
    assert len(_trigger_dates(db, stamped.id)) == 3
    assert len(_trigger_dates(db, healthy.id)) == 3


def test_unexpected_pair_failure_is_counted_as_error(db, default_triggers, make_lease, monkeypatch):
    make_lease()

    def broken_render(*args):
        raise TypeError("unsupported operand")

    monkeypatch.setattr(reminder_scheduler, "render", broken_render)

    result = generate_reminder_schedules(db, 3, 2024)

    assert result == {"generated": 0, "skipped": 0, "errors": 3, "month": 3, "year": 2024}
    assert db.query(ReminderSchedule).count() == 0


def test_renewal_after_lease_end_is_generated_in_end_month(db, default_triggers, make_lease):
    upsert_trigger(db, {
        "name": "lease_expired_followup",
        "trigger_type": "lease_renewal",
        "day_offset": 3,
        "message_template": "Hi {tenant_name}, your lease for {property_name} ended on {due_date}.",
        "priority": 50,
    })
    lease = make_lease(end_date="2024-12-30")

    for month, year in [(11, 2024), (12, 2024), (1, 2025), (2, 2025)]:
        generate_reminder_schedules(db, month, year)

    followups = [
        (name, trigger_date)
        for name, trigger_date in _trigger_dates(db, lease.id)
        if name == "lease_expired_followup"
    ]
    assert followups == [("lease_expired_followup", "2025-01-02")]
