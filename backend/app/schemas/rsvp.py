"""Pydantic schemas for RSVPs."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.rsvp import RSVPStatus


class RSVPCreate(BaseModel):
    user_id: str
    status: RSVPStatus = RSVPStatus.going
    guests_count: int = Field(0, ge=0)
    comment: Optional[str] = Field(None, max_length=500)


class RSVPOut(BaseModel):
    rsvp_id: str
    event_id: str
    user_id: str
    status: RSVPStatus
    guests_count: int
    comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
