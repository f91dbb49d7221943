"""Stored embedding vectors for events and users."""
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from app.database import Base


class EventEmbedding(Base):
    __tablename__ = "event_embeddings"

    event_id = Column(String(36), ForeignKey("events.event_id"), primary_key=True)
    model = Column(String(100), nullable=False)
    vector = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserInterestVector(Base):
    __tablename__ = "user_interest_vectors"

    user_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True)
    model = Column(String(100), nullable=False)
    vector = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
