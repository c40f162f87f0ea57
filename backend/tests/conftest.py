"""Shared fixtures: in-memory database, lease factories and a test client."""
import os
import sys
from datetime import date

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CRON_SECRET", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app import models  # noqa: E402,F401
from app.api import cron, deps, reminders, triggers  # noqa: E402
from app.database import Base  # noqa: E402
from app.models.lease import Lease  # noqa: E402
from app.models.property import Property, Tenant  # noqa: E402
from app.models.reminder import ReminderSchedule  # noqa: E402
from app.services.trigger_config_loader import load_default_triggers  # noqa: E402

CRON_SECRET = os.environ["CRON_SECRET"]


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def default_triggers(db):
    """The four default triggers from configs/triggers.yaml."""
    return load_default_triggers(db)


@pytest.fixture
def make_lease(db):
    """Create an active lease with its tenant and property."""

    def _make_lease(
        tenant_name: str | None = "John Doe",
        phone: str | None = "+254712345678",
        property_name: str = "Sample Apartment Complex",
        due_date: int | None = 5,
        rent_amount: float = 50000,
        start_date: str = "2024-01-01",
        end_date: str = "2024-12-31",
        status: str = "active",
    ) -> Lease:
        prop = Property(name=property_name, address="123 Main Street, Nairobi")
        tenant = Tenant(name=tenant_name, email="tenant@example.com", phone=phone)
        db.add_all([prop, tenant])
        db.flush()

        lease = Lease(
            tenant_id=tenant.id,
            property_id=prop.id,
            unit_number="A101",
            start_date=start_date,
            end_date=end_date,
            rent_amount=rent_amount,
            rent_currency="KES",
            due_date=due_date,
            status=status,
        )
        db.add(lease)
        db.commit()
        db.refresh(lease)
        return lease

    return _make_lease


@pytest.fixture
def make_reminder(db):
    """Insert a reminder row directly, bypassing generation."""

    def _make_reminder(
        lease: Lease,
        trigger_date: date | str,
        status: str = "pending",
        trigger_name: str = "rent_due_on_due_date",
        reminder_type: str = "rent_due",
        priority: int = 100,
        message: str = "Hi John Doe, your rent is due today.",
    ) -> ReminderSchedule:
        if isinstance(trigger_date, date):
            trigger_date = trigger_date.isoformat()
        reminder = ReminderSchedule(
            lease_id=lease.id,
            tenant_id=lease.tenant_id,
            property_id=lease.property_id,
            trigger_name=trigger_name,
            reminder_type=reminder_type,
            priority=priority,
            trigger_date=trigger_date,
            status=status,
            message_template="Hi {tenant_name}, your rent is due today.",
            personalized_message=message,
            reminder_metadata='{"tenant_name": "John Doe", "due_date": "5 Mar 2024", "rent_amount": 50000}',
        )
        db.add(reminder)
        db.commit()
        db.refresh(reminder)
        return reminder

    return _make_reminder


@pytest.fixture
def client(session_factory):
    app = FastAPI()
    app.include_router(cron.router, prefix="/api")
    app.include_router(reminders.router, prefix="/api")
    app.include_router(triggers.router, prefix="/api")

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    return TestClient(app)
