"""User ORM model: identity plus the profile attributes used for personalization."""
import uuid
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from app.database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    display_name = Column(String(100), nullable=False, unique=True)
    email = Column(String(255), nullable=True, unique=True)
    interests = Column(JSON, nullable=False, default=list)
    custom_interests = Column(JSON, nullable=False, default=list)
    fitness_goals = Column(JSON, nullable=False, default=list)
    experience_level = Column(String(50), nullable=True)
    age_range = Column(String(20), nullable=True)
    location = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
