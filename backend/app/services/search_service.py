"""Event search.

Matching is a case-insensitive substring test over title, description and
tags. Ranking prefers semantic similarity to the searching user's interest
vector; when that vector or the event embeddings are missing, results fall
back to soonest start first. The result always says which ranking was used.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from app.models.embedding import EventEmbedding, UserInterestVector
from app.models.event import Event
from app.services.embedding_service import cosine_similarity
from app.services.lifecycle import as_utc

logger = logging.getLogger(__name__)

RANKING_SEMANTIC = "semantic"
RANKING_TEXT = "text"


@dataclass
class SearchHit:
    event: Event
    score: Optional[float] = None


@dataclass
class SearchResult:
    query: str
    ranking: str
    hits: list[SearchHit] = field(default_factory=list)


def _matches(event: Event, needle: str) -> bool:
    if not needle:
        return True
    haystack = [event.title or "", event.description or "", *(event.tags or [])]
    return any(needle in text.lower() for text in haystack)


def _candidates(db: Session, community_id: Optional[str]) -> list[Event]:
    query = db.query(Event).filter(
        Event.deleted_at.is_(None),
        Event.is_active.is_(True),
        Event.cancelled_at.is_(None),
    )
    if community_id:
        query = query.filter(Event.community_id == community_id)
    return query.all()


def search_events(
    db: Session,
    q: str,
    user_id: Optional[str] = None,
    community_id: Optional[str] = None,
    limit: int = 20,
) -> SearchResult:
    """Search visible, non-cancelled events."""
    needle = (q or "").strip().lower()
    matched = [e for e in _candidates(db, community_id) if _matches(e, needle)]
    by_start = sorted(matched, key=lambda e: (as_utc(e.start_time_utc), e.event_id))

    interest = db.get(UserInterestVector, user_id) if user_id else None
    if interest is None or not interest.vector or not matched:
        return SearchResult(q, RANKING_TEXT, [SearchHit(e) for e in by_start[:limit]])

    embeddings = {
        row.event_id: row.vector
        for row in db.query(EventEmbedding).filter(
            EventEmbedding.event_id.in_([e.event_id for e in matched])
        )
    }
    if not embeddings:
        logger.info("No event embeddings available for search '%s'; ranking by start time", q)
        return SearchResult(q, RANKING_TEXT, [SearchHit(e) for e in by_start[:limit]])

    # Events without an embedding sort after every scored one, by start time.
    scored = [
        SearchHit(e, cosine_similarity(interest.vector, embeddings[e.event_id]) if e.event_id in embeddings else None)
        for e in by_start
    ]
    scored.sort(key=lambda h: (h.score is None, -(h.score or 0.0)))
    return SearchResult(q, RANKING_SEMANTIC, scored[:limit])
