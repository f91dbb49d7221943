"""Tag API routes: personalized and popular tags."""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.discovery import PersonalizedTagsOut, PopularTagsOut, RankedTagOut
from app.services import tag_service

router = APIRouter()


@router.get("/personalized", response_model=PersonalizedTagsOut)
def personalized_tags(
    user_id: str = Query(...),
    community_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Top tags for a user, from memberships, RSVPs and profile."""
    ranked = tag_service.get_personalized_tags(db, user_id, community_id=community_id)
    return PersonalizedTagsOut(
        user_id=user_id,
        community_id=community_id,
        tags=[r.tag for r in ranked],
        details=[RankedTagOut.model_validate(r) for r in ranked],
    )


@router.get("/popular", response_model=PopularTagsOut)
def popular_tags(community_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Most common tags across visible events."""
    return PopularTagsOut(
        community_id=community_id,
        tags=tag_service.get_popular_tags(db, community_id=community_id),
    )
