"""Pydantic schemas for Communities."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from app.models.activity import ActivityType
from app.models.community import CommunityRole


class CommunityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    created_by: str
    description: Optional[str] = None
    tags: list[str] = []
    slug: Optional[str] = None


class CommunityOut(BaseModel):
    community_id: str
    name: str
    slug: str
    description: Optional[str] = None
    tags: list[str] = []
    created_by: str
    is_active: bool
    deactivated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    created_at: datetime
    members: list[MemberOut] = []

    model_config = {"from_attributes": True}


class MemberAdd(BaseModel):
    user_id: str
    role: CommunityRole = CommunityRole.member


class MemberOut(BaseModel):
    user_id: str
    role: CommunityRole
    joined_at: datetime

    model_config = {"from_attributes": True}


class ActivityOut(BaseModel):
    activity_id: str
    community_id: str
    actor_user_id: str
    activity_type: ActivityType
    subject_id: Optional[str] = None
    payload: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# Rebuild CommunityOut now that MemberOut is defined
CommunityOut.model_rebuild()
