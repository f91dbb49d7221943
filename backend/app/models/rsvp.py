"""EventRSVP ORM model: one row per (event, user), mutated in place."""
import uuid
import enum
from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Index, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class RSVPStatus(str, enum.Enum):
    going = "going"
    maybe = "maybe"
    not_going = "not_going"


class EventRSVP(Base):
    __tablename__ = "event_rsvps"

    rsvp_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    status = Column(SAEnum(RSVPStatus), nullable=False)
    guests_count = Column(Integer, nullable=False, default=0)
    comment = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("Event", back_populates="rsvps")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_rsvp_user"),
        CheckConstraint("guests_count >= 0", name="check_rsvp_guests_non_negative"),
        Index("ix_event_rsvps_event_status", "event_id", "status"),
        Index("ix_event_rsvps_user_id", "user_id"),
    )
