"""CommunityActivity ORM model: append-only activity feed per community."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.sql import func
from app.database import Base


class ActivityType(str, enum.Enum):
    event_created = "event_created"
    event_updated = "event_updated"
    event_cancelled = "event_cancelled"
    member_joined = "member_joined"
    community_deactivated = "community_deactivated"
    community_reactivated = "community_reactivated"
    community_deleted = "community_deleted"


class CommunityActivity(Base):
    __tablename__ = "community_activities"

    activity_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    community_id = Column(String(36), ForeignKey("communities.community_id"), nullable=False)
    actor_user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    activity_type = Column(SAEnum(ActivityType), nullable=False)
    subject_id = Column(String(36), nullable=True)
    payload = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("ix_community_activities_community_id", "community_id"),)
