"""Lease model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base


class Lease(Base):
    """Tenancy agreement between a tenant and a property."""
    
    __tablename__ = "leases"
    __table_args__ = (
        Index("ix_leases_status_period", "status", "start_date", "end_date"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    unit_number = Column(String(50))
    
    # Tenancy period
    start_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    end_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    
    # Rent terms
    rent_amount = Column(Float, nullable=False)
    rent_currency = Column(String(3), default="KES")
    rent_frequency = Column(String(20), default="monthly")
    due_date = Column(Integer, default=1)  # Day of month rent falls due
    
    # Status: active, terminated, expired, pending
    status = Column(String(20), default="active", nullable=False)
    notes = Column(Text)
    
    # Timestamps
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    tenant = relationship("Tenant", back_populates="leases")
    property = relationship("Property", back_populates="leases")
    reminders = relationship("ReminderSchedule", back_populates="lease", cascade="all, delete-orphan")
