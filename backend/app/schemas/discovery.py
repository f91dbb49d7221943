"""Pydantic schemas for tag personalization and search."""
from typing import Optional
from pydantic import BaseModel

from app.schemas.event import EventOut


class RankedTagOut(BaseModel):
    tag: str
    source: str
    priority: int
    frequency: int
    sources: list[str] = []

    model_config = {"from_attributes": True}


class PersonalizedTagsOut(BaseModel):
    user_id: str
    community_id: Optional[str] = None
    tags: list[str]
    details: list[RankedTagOut]


class PopularTagsOut(BaseModel):
    community_id: Optional[str] = None
    tags: list[str]


class SearchHitOut(BaseModel):
    event: EventOut
    score: Optional[float] = None

    model_config = {"from_attributes": True}


class SearchOut(BaseModel):
    query: str
    ranking: str  # "semantic" or "text"
    results: list[SearchHitOut]
