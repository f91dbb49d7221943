"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = None
    interests: list[str] = []
    custom_interests: list[str] = []
    fitness_goals: list[str] = []
    experience_level: Optional[str] = None
    age_range: Optional[str] = None
    location: Optional[str] = None


class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = None
    interests: Optional[list[str]] = None
    custom_interests: Optional[list[str]] = None
    fitness_goals: Optional[list[str]] = None
    experience_level: Optional[str] = None
    age_range: Optional[str] = None
    location: Optional[str] = None


class UserOut(BaseModel):
    user_id: str
    display_name: str
    email: Optional[str] = None
    interests: list[str] = []
    custom_interests: list[str] = []
    fitness_goals: list[str] = []
    experience_level: Optional[str] = None
    age_range: Optional[str] = None
    location: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class EnrichmentOut(BaseModel):
    """Outcome of a best-effort enrichment (embedding) call."""
    outcome: str
    detail: Optional[str] = None
    retryable: bool = False
