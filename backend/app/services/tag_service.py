"""Personalized tag aggregation.

Candidate tags come from what the user does (community memberships, events
they are going to) and from what their profile declares. Each candidate
carries a fixed priority; observed behaviour always outranks declared
interests. Tags are merged case-insensitively, keeping the spelling and
priority of the highest-priority occurrence, then ranked by
(priority desc, frequency desc, tag asc).
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.community import Community, CommunityMember
from app.models.event import Event
from app.models.rsvp import EventRSVP, RSVPStatus
from app.models.user import User
from app.services.permissions import get_membership
from app.services.text_utils import clean_tag

logger = logging.getLogger(__name__)

# source -> priority
SOURCE_PRIORITY = {
    "community": 10,
    "rsvp": 9,
    "interest": 8,
    "custom_interest": 7,
    "fitness_goal": 6,
    "experience": 5,
    "age_range": 4,
    "location": 3,
}


@dataclass(frozen=True)
class TagCandidate:
    tag: str
    source: str

    @property
    def priority(self) -> int:
        return SOURCE_PRIORITY[self.source]


@dataclass
class RankedTag:
    tag: str
    source: str
    priority: int
    frequency: int = 1
    sources: list[str] = field(default_factory=list)


def rank_tags(
    candidates: Iterable[TagCandidate],
    limit: int = 10,
    max_length: int = 50,
) -> list[RankedTag]:
    """Merge, dedupe and rank candidates. Pure; deterministic for a given input set."""
    best: dict[str, TagCandidate] = {}
    frequency: Counter = Counter()
    sources: dict[str, set[str]] = {}

    for candidate in candidates:
        tag = clean_tag(candidate.tag, max_length)
        if tag is None:
            continue
        key = tag.lower()
        frequency[key] += 1
        sources.setdefault(key, set()).add(candidate.source)

        current = best.get(key)
        if (
            current is None
            or candidate.priority > current.priority
            or (candidate.priority == current.priority and tag < current.tag)
        ):
            best[key] = TagCandidate(tag=tag, source=candidate.source)

    ranked = sorted(best.items(), key=lambda item: (-item[1].priority, -frequency[item[0]], item[0]))
    return [
        RankedTag(
            tag=c.tag,
            source=c.source,
            priority=c.priority,
            frequency=frequency[key],
            sources=sorted(sources[key], key=lambda s: -SOURCE_PRIORITY[s]),
        )
        for key, c in ranked[:limit]
    ]


def _profile_candidates(user: User) -> list[TagCandidate]:
    candidates = [TagCandidate(t, "interest") for t in user.interests or []]
    candidates += [TagCandidate(t, "custom_interest") for t in user.custom_interests or []]
    candidates += [TagCandidate(t, "fitness_goal") for t in user.fitness_goals or []]
    for value, source in (
        (user.experience_level, "experience"),
        (user.age_range, "age_range"),
        (user.location, "location"),
    ):
        if value:
            candidates.append(TagCandidate(value, source))
    return candidates


def collect_candidates(db: Session, user: User, community_id: Optional[str] = None) -> list[TagCandidate]:
    """Gather (tag, source) pairs for a user, optionally scoped to one community."""
    membership_query = (
        db.query(Community.tags)
        .join(CommunityMember, CommunityMember.community_id == Community.community_id)
        .filter(CommunityMember.user_id == user.user_id, Community.deleted_at.is_(None))
    )
    rsvp_query = (
        db.query(Event.tags)
        .join(EventRSVP, EventRSVP.event_id == Event.event_id)
        .filter(
            EventRSVP.user_id == user.user_id,
            EventRSVP.status == RSVPStatus.going,
            Event.deleted_at.is_(None),
        )
    )
    if community_id:
        membership_query = membership_query.filter(Community.community_id == community_id)
        rsvp_query = rsvp_query.filter(Event.community_id == community_id)

    candidates: list[TagCandidate] = []
    for (tags,) in membership_query.order_by(Community.community_id).all():
        candidates += [TagCandidate(t, "community") for t in tags or []]
    for (tags,) in rsvp_query.order_by(Event.event_id).all():
        candidates += [TagCandidate(t, "rsvp") for t in tags or []]
    candidates += _profile_candidates(user)
    return candidates


def get_personalized_tags(
    db: Session,
    user_id: str,
    community_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[RankedTag]:
    """Top tags for a user; an empty list when there is nothing to go on.

    Scoped to a community, only members get results.
    """
    limit = limit or settings.PERSONALIZED_TAG_LIMIT
    user = db.query(User).filter(User.user_id == user_id).first()
    if user is None:
        logger.info("Personalized tags requested for unknown user %s", user_id)
        return []
    if community_id and get_membership(db, community_id, user_id) is None:
        return []

    return rank_tags(collect_candidates(db, user, community_id), limit=limit, max_length=settings.MAX_TAG_LENGTH)


def get_popular_tags(db: Session, community_id: Optional[str] = None, limit: Optional[int] = None) -> list[str]:
    """Most common tags across visible, non-cancelled events (frequency desc, then tag)."""
    limit = limit or settings.PERSONALIZED_TAG_LIMIT
    query = db.query(Event.tags).filter(
        Event.deleted_at.is_(None),
        Event.is_active.is_(True),
        Event.cancelled_at.is_(None),
    )
    if community_id:
        query = query.filter(Event.community_id == community_id)

    counts: Counter = Counter()
    spelling: dict[str, str] = {}
    for (tags,) in query.all():
        for raw in tags or []:
            tag = clean_tag(raw, settings.MAX_TAG_LENGTH)
            if tag is None:
                continue
            key = tag.lower()
            counts[key] += 1
            if key not in spelling or tag < spelling[key]:
                spelling[key] = tag

    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [spelling[key] for key, _ in ranked[:limit]]
