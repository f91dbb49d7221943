"""User API routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import NotFound, ValidationFailed, WriteConflict
from app.models.user import User
from app.schemas.user import EnrichmentOut, UserCreate, UserUpdate, UserOut
from app.services import embedding_service
from app.services.text_utils import dedupe_tags

logger = logging.getLogger(__name__)
router = APIRouter()

TAG_FIELDS = ("interests", "custom_interests", "fitness_goals")
REQUIRED_FIELDS = ("display_name",) + TAG_FIELDS


def _load_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFound("User")
    return user


def _clean_profile(data: dict) -> dict:
    for field in TAG_FIELDS:
        if data.get(field) is not None:
            data[field] = dedupe_tags(data[field], settings.MAX_TAG_LENGTH)
    return data


def _check_unique(db: Session, data: dict, user_id: str = None) -> None:
    for column in (User.display_name, User.email):
        value = data.get(column.key)
        if value is None:
            continue
        clash = db.query(User).filter(column == value, User.user_id != user_id).first()
        if clash:
            raise WriteConflict(f"A user with this {column.key} already exists")


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Create a new user with profile attributes used for personalization."""
    data = _clean_profile(payload.model_dump())
    _check_unique(db, data)
    user = User(**data)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s)", user.user_id, user.display_name)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    """List all users."""
    return db.query(User).order_by(User.display_name).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    return _load_user(db, user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    """Update profile attributes (partial update); refreshes the interest vector."""
    user = _load_user(db, user_id)
    for field in REQUIRED_FIELDS:
        if field in payload.model_fields_set and getattr(payload, field) is None:
            raise ValidationFailed(f"{field} cannot be null", field=field)
    changes = _clean_profile(payload.model_dump(exclude_unset=True))
    _check_unique(db, changes, user_id=user_id)
    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info("Updated user %s", user_id)

    result = embedding_service.refresh_user_interest_vector(db, user)
    if not result.ok:
        logger.info("Interest vector for user %s %s: %s", user_id, result.outcome.value, result.detail)
    return user


@router.post("/{user_id}/interest-vector", response_model=EnrichmentOut)
def refresh_interest_vector(user_id: str, db: Session = Depends(get_db)):
    """Recompute the user's interest vector; reports whether it was stored."""
    user = _load_user(db, user_id)
    result = embedding_service.refresh_user_interest_vector(db, user)
    return EnrichmentOut(outcome=result.outcome.value, detail=result.detail, retryable=result.retryable)
