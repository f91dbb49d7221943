"""Community and CommunityMember ORM models."""
import uuid
import enum
from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class CommunityRole(str, enum.Enum):
    admin = "admin"
    co_admin = "co-admin"
    member = "member"


MANAGER_ROLES = frozenset({CommunityRole.admin, CommunityRole.co_admin})


class Community(Base):
    __tablename__ = "communities"

    community_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
    deactivated_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    members = relationship("CommunityMember", back_populates="community", cascade="all, delete-orphan")
    events = relationship("Event", back_populates="community")

    __table_args__ = (Index("ix_communities_is_active", "is_active"),)


class CommunityMember(Base):
    __tablename__ = "community_members"

    community_id = Column(String(36), ForeignKey("communities.community_id"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True)
    role = Column(
        SAEnum(CommunityRole, values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=CommunityRole.member,
    )
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    community = relationship("Community", back_populates="members")
