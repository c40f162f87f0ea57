"""Property and tenant models (read-only context for reminders)."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from app.database import Base


class Property(Base):
    """A rental property."""
    
    __tablename__ = "properties"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    address = Column(Text)
    property_type = Column(String(50))  # apartment, house, commercial
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    leases = relationship("Lease", back_populates="property")


class Tenant(Base):
    """A tenant who can receive reminders."""
    
    __tablename__ = "tenants"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255))
    email = Column(String(255))
    phone = Column(String(32))  # E.164, e.g. +254712345678
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    leases = relationship("Lease", back_populates="tenant")
