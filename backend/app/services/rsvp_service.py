"""RSVP service with capacity-safe admission.

CONCURRENCY STRATEGY
====================

Problem:
  Two members RSVP 'going' to the last free spot at the same time. Both
  count the existing 'going' rows, both see room, both insert. The event is
  now over capacity.

Solution:
  1. Lock the event row (SELECT ... FOR UPDATE) at the start of the
     admission transaction. On PostgreSQL every admission for the same
     event queues on that lock, so the count it reads is still true when
     it commits.
  2. After the RSVP row is written (flushed), count 'going' again,
     including the new row. SQLite ignores FOR UPDATE and the pysqlite
     driver runs plain SELECTs outside a transaction, so step 1 protects
     nothing there. The write itself takes SQLite's single writer lock,
     which is held until commit, so the recount sees every admission that
     committed before ours. Over capacity -> roll back, CapacityExceeded.
  3. The (event_id, user_id) unique constraint catches two first-time
     RSVPs by the same user racing each other. That IntegrityError, and a
     SQLite "database is locked" from a stale read snapshot, are rolled back
     and retried RSVP_CONFLICT_RETRIES times before surfacing as a 409
     conflict. The upsert is idempotent, so a retry is safe.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import AuthorizationDenied, CapacityExceeded, InvalidState, NotFound, WriteConflict
from app.models.event import Event
from app.models.rsvp import EventRSVP, RSVPStatus
from app.services.permissions import get_membership, is_manager, require_member

logger = logging.getLogger(__name__)


def count_going(db: Session, event_id: str, exclude_user_id: Optional[str] = None) -> int:
    query = db.query(func.count(EventRSVP.rsvp_id)).filter(
        EventRSVP.event_id == event_id,
        EventRSVP.status == RSVPStatus.going,
    )
    if exclude_user_id is not None:
        query = query.filter(EventRSVP.user_id != exclude_user_id)
    return query.scalar() or 0


def _lock_event(db: Session, event_id: str) -> Event:
    event = (
        db.query(Event)
        .filter(Event.event_id == event_id, Event.deleted_at.is_(None))
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not event:
        raise NotFound("Event")
    return event


def _admit(
    db: Session,
    event_id: str,
    user_id: str,
    status: RSVPStatus,
    guests_count: int,
    comment: Optional[str],
) -> EventRSVP:
    event = _lock_event(db, event_id)

    if event.cancelled_at is not None:
        raise InvalidState("Event is cancelled")
    if not event.is_active:
        raise InvalidState("Event is not active")
    require_member(db, event.community_id, user_id)

    rsvp = (
        db.query(EventRSVP)
        .filter(EventRSVP.event_id == event_id, EventRSVP.user_id == user_id)
        .first()
    )

    # Re-confirming the status already held never touches the going count.
    admitting = (
        status == RSVPStatus.going
        and event.capacity is not None
        and not (rsvp and rsvp.status == RSVPStatus.going)
    )
    if admitting:
        going = count_going(db, event_id, exclude_user_id=user_id)
        if going >= event.capacity:
            logger.info(
                "RSVP rejected for user %s: event %s full (%d/%d)",
                user_id, event_id, going, event.capacity,
            )
            raise CapacityExceeded(event_id, event.capacity)

    if rsvp is None:
        rsvp = EventRSVP(
            event_id=event_id,
            user_id=user_id,
            status=status,
            guests_count=guests_count,
            comment=comment,
        )
        db.add(rsvp)
    else:
        rsvp.status = status
        rsvp.guests_count = guests_count
        if comment is not None:
            rsvp.comment = comment

    db.flush()

    # The write holds the writer lock until commit; recount with our row in.
    if admitting:
        going = count_going(db, event_id)
        if going > event.capacity:
            logger.warning(
                "RSVP for user %s lost the race for event %s (%d/%d)",
                user_id, event_id, going, event.capacity,
            )
            raise CapacityExceeded(event_id, event.capacity)

    db.commit()
    db.refresh(rsvp)
    return rsvp


def submit_rsvp(
    db: Session,
    event_id: str,
    user_id: str,
    status: RSVPStatus,
    guests_count: int = 0,
    comment: Optional[str] = None,
) -> EventRSVP:
    """Create or change a member's RSVP, enforcing the event's capacity."""
    attempts = settings.RSVP_CONFLICT_RETRIES + 1
    for attempt in range(1, attempts + 1):
        try:
            rsvp = _admit(db, event_id, user_id, status, guests_count, comment)
        except (IntegrityError, OperationalError) as exc:
            db.rollback()
            if isinstance(exc, OperationalError) and db.get_bind().dialect.name != "sqlite":
                raise
            logger.info("RSVP write conflict for user %s on event %s (attempt %d)", user_id, event_id, attempt)
            if attempt == attempts:
                raise WriteConflict("RSVP could not be saved due to a concurrent update. Please try again.")
            continue
        except Exception:
            db.rollback()
            raise

        logger.info("User %s RSVP'd '%s' to event %s", user_id, status.value, event_id)
        return rsvp

    raise WriteConflict("RSVP could not be saved")


def withdraw_rsvp(db: Session, event_id: str, user_id: str, actor_user_id: str) -> None:
    """Delete an RSVP. Members withdraw their own; admins may remove anyone's."""
    rsvp = (
        db.query(EventRSVP)
        .filter(EventRSVP.event_id == event_id, EventRSVP.user_id == user_id)
        .first()
    )
    if not rsvp:
        raise NotFound("RSVP")

    if actor_user_id != user_id:
        membership = get_membership(db, rsvp.event.community_id, actor_user_id)
        if not is_manager(membership):
            raise AuthorizationDenied("Only community admins may remove another member's RSVP")

    db.delete(rsvp)
    db.commit()
    logger.info("Withdrew RSVP of user %s from event %s (by %s)", user_id, event_id, actor_user_id)


def list_rsvps(db: Session, event_id: str, status: Optional[RSVPStatus] = None) -> list[EventRSVP]:
    query = db.query(EventRSVP).filter(EventRSVP.event_id == event_id)
    if status is not None:
        query = query.filter(EventRSVP.status == status)
    return query.order_by(EventRSVP.created_at).all()
