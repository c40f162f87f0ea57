"""Reminder schedule schemas."""
import json
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class LeaseSummary(BaseModel):
    """Lease fields shown alongside a reminder."""
    
    id: str
    start_date: str
    end_date: str
    rent_amount: float
    rent_currency: str | None = None
    due_date: int | None = None
    rent_frequency: str | None = None
    
    class Config:
        from_attributes = True


class TenantSummary(BaseModel):
    """Tenant fields shown alongside a reminder."""
    
    id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    
    class Config:
        from_attributes = True


class PropertySummary(BaseModel):
    """Property fields shown alongside a reminder."""
    
    id: str
    name: str
    address: str | None = None
    
    class Config:
        from_attributes = True


class ReminderResponse(BaseModel):
    """Reminder schedule record with its lease, tenant and property."""
    
    id: str
    lease_id: str
    tenant_id: str
    property_id: str
    trigger_name: str
    reminder_type: str
    priority: int | None = None
    trigger_date: str
    status: str  # pending, sent, failed, cancelled
    message_template: str
    personalized_message: str | None = None
    trigger_config: dict = Field(default_factory=dict)
    metadata: dict = Field(default_factory=dict, validation_alias="reminder_metadata")
    sent_at: str | None = None
    failed_reason: str | None = None
    delivery_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    lease: LeaseSummary | None = None
    tenant: TenantSummary | None = None
    property: PropertySummary | None = None
    
    @field_validator("trigger_config", "metadata", mode="before")
    @classmethod
    def parse_json(cls, v: Any) -> dict:
        if v is None:
            return {}
        if isinstance(v, str):
            return json.loads(v or "{}")
        return v
    
    class Config:
        from_attributes = True
        populate_by_name = True


class ReminderListResponse(BaseModel):
    """List of reminders."""
    
    reminders: list[ReminderResponse]
    count: int
    filters: dict | None = None


class GenerateRequest(BaseModel):
    """Request to generate schedules for the month containing target_date."""
    
    target_date: date | None = None


class GenerationResponse(BaseModel):
    """Counts from a generation run."""
    
    generated: int
    skipped: int
    errors: int
    month: int
    year: int


class ReminderStatusUpdate(BaseModel):
    """Request to move a reminder out of pending."""
    
    status: Literal["sent", "failed", "cancelled"]
    delivery_id: str | None = None
    failed_reason: str | None = None


class StatusCount(BaseModel):
    status: str
    count: int


class TypeCount(BaseModel):
    type: str
    count: int


class ReminderStatisticsResponse(BaseModel):
    """Aggregate reminder counts."""
    
    total: int
    by_status: list[StatusCount]
    today: list[StatusCount]
    by_type: list[TypeCount]


class CleanupResponse(BaseModel):
    """Result of a retention sweep."""
    
    deleted_count: int
    cutoff_date: str


class DeliveryPayload(BaseModel):
    """Payload handed to the messaging collaborator."""
    
    to: str
    message: str
    template_variables: dict
    metadata: dict


class CronResponse(BaseModel):
    """Summary of a cron run."""
    
    generated: GenerationResponse
    todays_reminders: int
    messages: list[DeliveryPayload]
    cleanup: CleanupResponse
