"""Embedding provider integration: event embeddings and user interest vectors.

The provider is an enrichment, never a precondition: every entry point here
returns an ``EnrichmentResult`` describing whether the vector was stored,
skipped because the provider is unavailable/unconfigured, or failed.
"""
import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from openai import OpenAI, OpenAIError, APIConnectionError, APITimeoutError, RateLimitError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import DependencyUnavailable
from app.models.community import Community, CommunityMember
from app.models.embedding import EventEmbedding, UserInterestVector
from app.models.event import Event
from app.models.user import User

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    model: str

    def embed(self, text: str) -> list[float]: ...


class OpenAIEmbedder:
    """Thin wrapper over the OpenAI embeddings endpoint."""

    def __init__(self, api_key: str, model: str, timeout: float):
        self.model = model
        self._client = OpenAI(api_key=api_key, timeout=timeout)

    def embed(self, text: str) -> list[float]:
        try:
            response = self._client.embeddings.create(model=self.model, input=text)
        except (APIConnectionError, APITimeoutError, RateLimitError) as exc:
            raise DependencyUnavailable("embedding provider", str(exc), retryable=True) from exc
        except OpenAIError as exc:
            raise DependencyUnavailable("embedding provider", str(exc), retryable=False) from exc
        return list(response.data[0].embedding)


def default_embedder() -> Optional[Embedder]:
    """Embedder built from settings, or None when no API key is configured."""
    if not settings.OPENAI_API_KEY or settings.OPENAI_API_KEY == "your-api-key-here":
        return None
    return OpenAIEmbedder(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_EMBEDDING_MODEL,
        timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
    )


class EnrichmentOutcome(str, enum.Enum):
    succeeded = "succeeded"
    skipped = "skipped"
    failed = "failed"


@dataclass
class EnrichmentResult:
    outcome: EnrichmentOutcome
    detail: Optional[str] = None
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == EnrichmentOutcome.succeeded


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; 0.0 for empty, mismatched or zero vectors."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def event_embedding_text(event: Event) -> str:
    parts = [event.title or "", event.description or "", " ".join(event.tags or [])]
    return " ".join(p for p in parts if p).strip()


def user_interest_text(db: Session, user: User) -> str:
    community_tags: list[str] = []
    rows = (
        db.query(Community.tags)
        .join(CommunityMember, CommunityMember.community_id == Community.community_id)
        .filter(CommunityMember.user_id == user.user_id, Community.deleted_at.is_(None))
        .all()
    )
    for (tags,) in rows:
        community_tags.extend(tags or [])
    parts = [
        *(user.interests or []),
        *(user.custom_interests or []),
        *(user.fitness_goals or []),
        user.experience_level or "",
        user.age_range or "",
        user.location or "",
        *community_tags,
    ]
    return " ".join(p for p in parts if p).strip()


def _embed(text: str, embedder: Optional[Embedder], subject: str):
    """Return (vector, model) or an EnrichmentResult explaining why not."""
    if embedder is None:
        logger.info("Embedding provider not configured, skipping %s", subject)
        return EnrichmentResult(EnrichmentOutcome.skipped, "embedding provider not configured")
    if not text:
        return EnrichmentResult(EnrichmentOutcome.skipped, "nothing to embed")
    try:
        return embedder.embed(text), embedder.model
    except DependencyUnavailable as exc:
        logger.warning("Embedding for %s failed: %s", subject, exc)
        outcome = EnrichmentOutcome.failed if exc.retryable else EnrichmentOutcome.skipped
        return EnrichmentResult(outcome, str(exc), retryable=exc.retryable)


def generate_event_embedding(db: Session, event: Event, embedder: Optional[Embedder] = None) -> EnrichmentResult:
    """Embed an event and store the vector; never raises."""
    embedder = embedder if embedder is not None else default_embedder()
    embedded = _embed(event_embedding_text(event), embedder, f"event {event.event_id}")
    if isinstance(embedded, EnrichmentResult):
        return embedded
    vector, model = embedded

    try:
        row = db.get(EventEmbedding, event.event_id)
        if row is None:
            row = EventEmbedding(event_id=event.event_id, model=model, vector=vector)
            db.add(row)
        else:
            row.model = model
            row.vector = vector
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not store embedding for event %s: %s", event.event_id, exc)
        return EnrichmentResult(EnrichmentOutcome.failed, str(exc), retryable=True)

    logger.info("Stored %d-dim embedding for event %s", len(vector), event.event_id)
    return EnrichmentResult(EnrichmentOutcome.succeeded)


def refresh_user_interest_vector(db: Session, user: User, embedder: Optional[Embedder] = None) -> EnrichmentResult:
    """Recompute the user's interest vector from profile and community tags; never raises."""
    embedder = embedder if embedder is not None else default_embedder()
    embedded = _embed(user_interest_text(db, user), embedder, f"user {user.user_id}")
    if isinstance(embedded, EnrichmentResult):
        return embedded
    vector, model = embedded

    try:
        row = db.get(UserInterestVector, user.user_id)
        if row is None:
            db.add(UserInterestVector(user_id=user.user_id, model=model, vector=vector))
        else:
            row.model = model
            row.vector = vector
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not store interest vector for user %s: %s", user.user_id, exc)
        return EnrichmentResult(EnrichmentOutcome.failed, str(exc), retryable=True)

    logger.info("Refreshed interest vector for user %s", user.user_id)
    return EnrichmentResult(EnrichmentOutcome.succeeded)
