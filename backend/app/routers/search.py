"""Search API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.discovery import SearchHitOut, SearchOut
from app.schemas.event import EventOut
from app.services import search_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/events", response_model=SearchOut)
def search_events(
    q: str = Query("", max_length=200),
    user_id: Optional[str] = Query(None),
    community_id: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Search events; semantically ranked when the user has an interest vector."""
    result = search_service.search_events(db, q, user_id=user_id, community_id=community_id, limit=limit)
    logger.info("Search '%s' returned %d results (%s ranking)", q, len(result.hits), result.ranking)
    return SearchOut(
        query=result.query,
        ranking=result.ranking,
        results=[
            SearchHitOut(event=EventOut.model_validate(hit.event), score=hit.score)
            for hit in result.hits
        ],
    )
