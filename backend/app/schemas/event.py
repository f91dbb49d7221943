"""Pydantic schemas for Events."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.services.lifecycle import EventStatus


class EventCreate(BaseModel):
    community_id: str
    created_by: str
    title: str = Field(..., min_length=1, max_length=255)
    start_time_utc: datetime
    end_time_utc: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    is_online: bool = False
    meeting_url: Optional[str] = None
    tags: list[str] = []


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_time_utc: Optional[datetime] = None
    end_time_utc: Optional[datetime] = None
    capacity: Optional[int] = None
    is_online: Optional[bool] = None
    meeting_url: Optional[str] = None
    tags: Optional[list[str]] = None
    is_active: Optional[bool] = None
    version: int  # required for optimistic locking


class EventOut(BaseModel):
    event_id: str
    community_id: str
    created_by: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time_utc: datetime
    end_time_utc: Optional[datetime] = None
    capacity: Optional[int] = None
    is_online: bool
    meeting_url: Optional[str] = None
    tags: list[str] = []
    is_active: bool
    status: EventStatus
    going_count: int
    spots_left: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_user_id: Optional[str] = None
    cancel_reason: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventCancelRequest(BaseModel):
    cancelled_by_user_id: str
    cancel_reason: Optional[str] = None
    version: int  # required for optimistic locking
