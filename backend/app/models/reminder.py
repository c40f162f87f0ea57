"""Reminder schedule model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base


class ReminderSchedule(Base):
    """A concrete, dated instance of a trigger for one lease.
    
    Tenant, property, message and trigger parameters are copied at generation
    time and never refreshed, so a reminder reflects the lease as it was when
    the reminder was generated.
    """
    
    __tablename__ = "reminder_schedules"
    __table_args__ = (
        UniqueConstraint("lease_id", "trigger_name", "trigger_date", name="uq_reminder_schedule"),
        Index("ix_reminder_schedules_due", "trigger_date", "status"),
        Index("ix_reminder_schedules_type", "reminder_type"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    lease_id = Column(String(36), ForeignKey("leases.id", ondelete="CASCADE"), nullable=False)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    
    # Originating trigger (snapshot)
    trigger_name = Column(String(100), nullable=False)
    reminder_type = Column(String(30), nullable=False)
    priority = Column(Integer, default=100)
    trigger_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    
    # Status: pending, sent, failed, cancelled
    status = Column(String(20), default="pending", nullable=False)
    
    # Content
    message_template = Column(Text, nullable=False)
    personalized_message = Column(Text)
    trigger_config = Column(Text, default="{}")  # JSON snapshot of the trigger
    reminder_metadata = Column("metadata", Text, default="{}")  # JSON context
    
    # Delivery bookkeeping
    sent_at = Column(String(26))
    failed_reason = Column(Text)
    delivery_id = Column(String(255))  # e.g. WhatsApp message id
    
    # Timestamps
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    lease = relationship("Lease", back_populates="reminders")
    tenant = relationship("Tenant")
    property = relationship("Property")
