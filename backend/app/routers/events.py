"""Event API routes; delegates to event_service and rsvp_service for invariant enforcement."""
import logging
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.rsvp import RSVPStatus
from app.schemas.event import EventCreate, EventUpdate, EventOut, EventCancelRequest
from app.schemas.rsvp import RSVPCreate, RSVPOut
from app.services import event_service, rsvp_service
from app.services.lifecycle import EventStatus

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    """Create a new event in an active community (admins/co-admins)."""
    return event_service.create_event(
        db=db,
        community_id=payload.community_id,
        created_by=payload.created_by,
        title=payload.title,
        start_utc=payload.start_time_utc,
        end_utc=payload.end_time_utc,
        description=payload.description,
        location=payload.location,
        capacity=payload.capacity,
        is_online=payload.is_online,
        meeting_url=payload.meeting_url,
        tags=payload.tags,
    )


@router.get("/", response_model=list[EventOut])
def list_events(
    community_id: Optional[str] = Query(None),
    status: Optional[EventStatus] = Query(None, description="Derived status to filter on"),
    start_after: Optional[datetime] = Query(None),
    start_before: Optional[datetime] = Query(None),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
):
    """List events with optional filters."""
    return event_service.list_events(
        db,
        community_id=community_id,
        status=status,
        start_after=start_after,
        start_before=start_before,
        include_inactive=include_inactive,
    )


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    """Fetch a single event with its derived status and remaining spots."""
    return event_service.get_event(db, event_id)


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    actor_user_id: str = Query(..., description="ID of the user performing the update"),
    db: Session = Depends(get_db),
):
    """Update an event (creator or community admins, optimistic locking enforced)."""
    updates = payload.model_dump(exclude_unset=True, exclude={"version"})
    return event_service.update_event(
        db=db,
        event_id=event_id,
        actor_user_id=actor_user_id,
        version=payload.version,
        updates=updates,
    )


@router.post("/{event_id}/cancel", response_model=EventOut)
def cancel_event(event_id: str, payload: EventCancelRequest, db: Session = Depends(get_db)):
    """Cancel an event (terminal, optimistic locking enforced)."""
    return event_service.cancel_event(
        db=db,
        event_id=event_id,
        actor_user_id=payload.cancelled_by_user_id,
        version=payload.version,
        cancel_reason=payload.cancel_reason,
    )


@router.post("/{event_id}/rsvp", response_model=RSVPOut)
def submit_rsvp(event_id: str, payload: RSVPCreate, db: Session = Depends(get_db)):
    """Create or change a member's RSVP. 'going' is refused once the event is full."""
    return rsvp_service.submit_rsvp(
        db=db,
        event_id=event_id,
        user_id=payload.user_id,
        status=payload.status,
        guests_count=payload.guests_count,
        comment=payload.comment,
    )


@router.delete("/{event_id}/rsvp/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def withdraw_rsvp(
    event_id: str,
    user_id: str,
    actor_user_id: Optional[str] = Query(None, description="Defaults to the RSVP's owner"),
    db: Session = Depends(get_db),
):
    """Withdraw an RSVP, freeing the spot."""
    rsvp_service.withdraw_rsvp(db, event_id, user_id, actor_user_id or user_id)


@router.get("/{event_id}/rsvps", response_model=list[RSVPOut])
def list_rsvps(
    event_id: str,
    status: Optional[RSVPStatus] = Query(None),
    db: Session = Depends(get_db),
):
    """List RSVPs for an event, optionally by status."""
    event_service.get_event(db, event_id)
    return rsvp_service.list_rsvps(db, event_id, status=status)
