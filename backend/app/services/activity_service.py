"""Community activity feed: best-effort side effect of primary mutations."""
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.activity import ActivityType, CommunityActivity

logger = logging.getLogger(__name__)


def record_activity(
    db: Session,
    community_id: str,
    actor_user_id: str,
    activity_type: ActivityType,
    subject_id: Optional[str] = None,
    payload: Optional[dict[str, Any]] = None,
) -> bool:
    """Append an activity row in its own commit.

    Called after the primary mutation has committed. A failure is rolled
    back and logged; it never propagates to the caller.
    """
    try:
        db.add(CommunityActivity(
            community_id=community_id,
            actor_user_id=actor_user_id,
            activity_type=activity_type,
            subject_id=subject_id,
            payload=payload,
        ))
        db.commit()
        return True
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Failed to record %s activity for community %s: %s",
            activity_type.value, community_id, exc,
        )
        return False


def list_activity(db: Session, community_id: str, limit: int = 50) -> list[CommunityActivity]:
    return (
        db.query(CommunityActivity)
        .filter(CommunityActivity.community_id == community_id)
        .order_by(CommunityActivity.created_at.desc())
        .limit(limit)
        .all()
    )
