"""Core event service: community events and their lifecycle.

Responsibilities:
- Authorization: only community admins/co-admins create events; admins,
  co-admins or the event's creator update or cancel them
- Validation before anything is persisted (time window, capacity, tags)
- Optimistic locking via the version field
- Cancellation is terminal and soft (metadata, no row removal)
- Best-effort side effects after commit: activity feed entry and embedding
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.errors import AuthorizationDenied, InvalidState, NotFound, ValidationFailed, WriteConflict
from app.models.activity import ActivityType
from app.models.event import Event
from app.services import activity_service, embedding_service
from app.services.community_service import get_community
from app.services.lifecycle import EventStatus, as_utc, event_status
from app.services.permissions import get_membership, is_manager, require_role
from app.services.text_utils import dedupe_tags

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "title", "description", "location", "start_time_utc", "end_time_utc",
    "capacity", "is_online", "meeting_url", "tags", "is_active",
)
# Columns that may be changed but never cleared.
NON_NULLABLE_FIELDS = ("title", "start_time_utc", "is_online", "tags", "is_active")


def _event_summary(event: Event) -> dict[str, Any]:
    """JSON-safe snapshot stored in the activity feed."""
    return {
        "event_id": event.event_id,
        "title": event.title,
        "start_time_utc": as_utc(event.start_time_utc).isoformat() if event.start_time_utc else None,
        "end_time_utc": as_utc(event.end_time_utc).isoformat() if event.end_time_utc else None,
        "capacity": event.capacity,
        "version": event.version,
    }


def _validate_schedule(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is None:
        raise ValidationFailed("start_time_utc is required", field="start_time_utc")
    if end is not None and as_utc(end) <= as_utc(start):
        raise ValidationFailed("end_time_utc must be after start_time_utc", field="end_time_utc")


def _validate_capacity(capacity: Optional[int]) -> None:
    if capacity is not None and capacity <= 0:
        raise ValidationFailed("capacity must be a positive integer", field="capacity")


def _check_can_modify(db: Session, event: Event, actor_user_id: str) -> None:
    membership = get_membership(db, event.community_id, actor_user_id)
    if event.created_by == actor_user_id and membership is not None:
        return
    if not is_manager(membership):
        raise AuthorizationDenied("Only the event creator or community admins may modify this event")


def get_event(db: Session, event_id: str) -> Event:
    """Fetch a non-deleted event."""
    event = (
        db.query(Event)
        .filter(Event.event_id == event_id, Event.deleted_at.is_(None))
        .first()
    )
    if not event:
        raise NotFound("Event")
    return event


def create_event(
    db: Session,
    community_id: str,
    created_by: str,
    title: str,
    start_utc: datetime,
    end_utc: Optional[datetime] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
    capacity: Optional[int] = None,
    is_online: bool = False,
    meeting_url: Optional[str] = None,
    tags: Optional[list[str]] = None,
) -> Event:
    """Create an event in an active community."""
    if not title or not title.strip():
        raise ValidationFailed("title is required", field="title")
    _validate_schedule(start_utc, end_utc)
    _validate_capacity(capacity)

    community = get_community(db, community_id)
    require_role(db, community_id, created_by)
    if not community.is_active:
        raise InvalidState("Cannot create events in a deactivated community")

    event = Event(
        community_id=community_id,
        created_by=created_by,
        title=title.strip(),
        description=description,
        location=location,
        start_time_utc=start_utc,
        end_time_utc=end_utc,
        capacity=capacity,
        is_online=is_online,
        meeting_url=meeting_url,
        tags=dedupe_tags(tags or [], settings.MAX_TAG_LENGTH),
        version=1,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) in community %s by %s", event.title, event.event_id, community_id, created_by)

    activity_service.record_activity(
        db, community_id, created_by, ActivityType.event_created,
        subject_id=event.event_id, payload=_event_summary(event),
    )
    result = embedding_service.generate_event_embedding(db, event)
    if not result.ok:
        logger.info("Embedding for event %s %s: %s", event.event_id, result.outcome.value, result.detail)

    db.refresh(event)
    return event


def update_event(
    db: Session,
    event_id: str,
    actor_user_id: str,
    version: int,
    updates: dict[str, Any],
) -> Event:
    """Update an event with optimistic locking and authorization."""
    event = get_event(db, event_id)
    _check_can_modify(db, event, actor_user_id)

    if event.cancelled_at is not None:
        raise InvalidState("Event is cancelled")

    if event.version != version:
        raise WriteConflict(f"Version mismatch: expected {event.version}, got {version}. Re-fetch and retry.")

    changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
    for field in NON_NULLABLE_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationFailed(f"{field} cannot be null", field=field)
    if "title" in changes and (not changes["title"] or not changes["title"].strip()):
        raise ValidationFailed("title is required", field="title")
    _validate_schedule(
        changes.get("start_time_utc", event.start_time_utc),
        changes.get("end_time_utc", event.end_time_utc),
    )
    _validate_capacity(changes.get("capacity"))
    if changes.get("capacity") is not None and changes["capacity"] < event.going_count:
        raise ValidationFailed(
            f"capacity cannot be lower than the {event.going_count} attendees already going",
            field="capacity",
        )
    if "tags" in changes:
        changes["tags"] = dedupe_tags(changes["tags"] or [], settings.MAX_TAG_LENGTH)
    if changes.get("is_active") and not event.community.is_active:
        raise InvalidState("Cannot reactivate an event while its community is deactivated")

    before = _event_summary(event)
    for field, value in changes.items():
        setattr(event, field, value)

    event.version += 1
    event.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(event)
    logger.info("Updated event %s to version %d", event_id, event.version)

    activity_service.record_activity(
        db, event.community_id, actor_user_id, ActivityType.event_updated,
        subject_id=event.event_id,
        payload={"before": before, "after": _event_summary(event), "fields": sorted(changes)},
    )
    db.refresh(event)
    return event


def cancel_event(
    db: Session,
    event_id: str,
    actor_user_id: str,
    version: int,
    cancel_reason: Optional[str] = None,
) -> Event:
    """Cancel an event. Cancellation is terminal."""
    event = get_event(db, event_id)
    _check_can_modify(db, event, actor_user_id)

    if event.cancelled_at is not None:
        raise InvalidState("Event is already cancelled")

    if event.version != version:
        raise WriteConflict(f"Version mismatch: expected {event.version}, got {version}. Re-fetch and retry.")

    now = datetime.now(timezone.utc)
    event.cancelled_at = now
    event.cancelled_by_user_id = actor_user_id
    event.cancel_reason = cancel_reason
    event.version += 1
    event.updated_at = now
    db.commit()
    db.refresh(event)
    logger.info("Cancelled event %s (reason: %s)", event_id, cancel_reason)

    activity_service.record_activity(
        db, event.community_id, actor_user_id, ActivityType.event_cancelled,
        subject_id=event.event_id, payload={"reason": cancel_reason},
    )
    db.refresh(event)
    return event


def list_events(
    db: Session,
    community_id: Optional[str] = None,
    status: Optional[EventStatus] = None,
    start_after: Optional[datetime] = None,
    start_before: Optional[datetime] = None,
    include_inactive: bool = False,
    now: Optional[datetime] = None,
) -> list[Event]:
    """Visible events, oldest start first. Soft-deleted events are never listed."""
    query = db.query(Event).filter(Event.deleted_at.is_(None))
    if community_id:
        query = query.filter(Event.community_id == community_id)
    if start_after:
        query = query.filter(Event.start_time_utc >= start_after)
    if start_before:
        query = query.filter(Event.start_time_utc <= start_before)
    if not include_inactive:
        query = query.filter(Event.is_active.is_(True))

    events = query.order_by(Event.start_time_utc).all()
    if status is not None:
        now = now or datetime.now(timezone.utc)
        events = [e for e in events if event_status(e, now) == status]
    return events
