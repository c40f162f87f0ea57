"""SQLAlchemy models package."""
from app.models.property import Property, Tenant
from app.models.lease import Lease
from app.models.trigger import ReminderTrigger
from app.models.reminder import ReminderSchedule

__all__ = [
    "Property",
    "Tenant",
    "Lease",
    "ReminderTrigger",
    "ReminderSchedule",
]
