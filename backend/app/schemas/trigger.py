"""Reminder trigger schemas."""
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

TriggerType = Literal["rent_due", "lease_renewal", "maintenance", "inspection"]


class TriggerUpsert(BaseModel):
    """Request to create or replace a trigger."""
    
    name: str = Field(..., min_length=1, max_length=100)
    trigger_type: TriggerType
    day_offset: int = Field(..., strict=True, description="Days relative to the anchor; negative = before")
    message_template: str = Field(..., min_length=1)
    priority: int = 100
    is_active: bool = True
    description: str | None = None


class TriggerUpdate(BaseModel):
    """Request to replace the trigger named in the path."""
    
    trigger_type: TriggerType
    day_offset: int = Field(..., strict=True)
    message_template: str = Field(..., min_length=1)
    priority: int = 100
    is_active: bool = True
    description: str | None = None


class TriggerResponse(BaseModel):
    """Trigger record."""
    
    id: str
    name: str
    trigger_type: str
    day_offset: int
    message_template: str
    priority: int
    is_active: bool
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    
    @field_validator("is_active", mode="before")
    @classmethod
    def int_to_bool(cls, v: Any) -> bool:
        if isinstance(v, int):
            return bool(v)
        return v
    
    class Config:
        from_attributes = True


class TriggerListResponse(BaseModel):
    """List of triggers."""
    
    triggers: list[TriggerResponse]
    count: int
