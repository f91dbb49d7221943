"""Event ORM model.

Status is not a column: it is derived from the schedule, the cancellation
marker and the wall clock every time it is read (see services.lifecycle).
"""
import uuid
from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, Integer, JSON, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.rsvp import RSVPStatus
from app.services.lifecycle import event_status


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    community_id = Column(String(36), ForeignKey("communities.community_id"), nullable=False)
    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(500), nullable=True)
    start_time_utc = Column(DateTime(timezone=True), nullable=False)
    end_time_utc = Column(DateTime(timezone=True), nullable=True)
    capacity = Column(Integer, nullable=True)
    is_online = Column(Boolean, nullable=False, default=False)
    meeting_url = Column(String(500), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by_user_id = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    cancel_reason = Column(String(500), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    community = relationship("Community", back_populates="events")
    rsvps = relationship("EventRSVP", back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("capacity IS NULL OR capacity > 0", name="check_event_capacity_positive"),
        Index("ix_events_community_id", "community_id"),
        Index("ix_events_start_time", "start_time_utc"),
    )

    @property
    def status(self):
        return event_status(self)

    @property
    def going_count(self) -> int:
        return sum(1 for r in self.rsvps if r.status == RSVPStatus.going)

    @property
    def spots_left(self):
        if self.capacity is None:
            return None
        return max(self.capacity - self.going_count, 0)
