"""Reminder trigger configuration model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, Index, Integer, String, Text

from app.database import Base


class ReminderTrigger(Base):
    """Named rule mapping a reminder type and day offset to a message template."""
    
    __tablename__ = "reminder_triggers"
    __table_args__ = (
        Index("ix_reminder_triggers_active", "is_active", "priority"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), unique=True, nullable=False, index=True)
    
    # Trigger type: rent_due, lease_renewal, maintenance, inspection
    trigger_type = Column(String(30), nullable=False)
    day_offset = Column(Integer, nullable=False, default=0)  # Negative = before anchor
    
    message_template = Column(Text, nullable=False)
    description = Column(Text)
    priority = Column(Integer, default=100)  # Lower runs first
    is_active = Column(Integer, default=1)  # SQLite boolean
    
    # Timestamps
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
