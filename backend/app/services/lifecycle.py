"""Event lifecycle: display status derived from time, never stored.

An explicitly cancelled event is ``cancelled`` forever. Otherwise the status
is a pure function of (start, end, now):

    start <= now < end            -> ongoing
    end is None and start <= now  -> ongoing   (unless an open-ended duration is configured)
    end <= now                    -> completed
    otherwise                     -> upcoming
"""
import enum
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.config import settings


class EventStatus(str, enum.Enum):
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"
    cancelled = "cancelled"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def effective_end(
    start: datetime,
    end: Optional[datetime],
    open_ended_duration_hours: Optional[float] = None,
) -> Optional[datetime]:
    """End used for status purposes; None means the event never auto-completes."""
    if end is not None:
        return as_utc(end)
    if open_ended_duration_hours is None:
        return None
    return as_utc(start) + timedelta(hours=open_ended_duration_hours)


def derive_status(
    start: datetime,
    end: Optional[datetime],
    now: datetime,
    cancelled: bool = False,
    open_ended_duration_hours: Optional[float] = None,
) -> EventStatus:
    if cancelled:
        return EventStatus.cancelled

    start = as_utc(start)
    now = as_utc(now)
    end = effective_end(start, end, open_ended_duration_hours)

    if end is not None and end <= now:
        return EventStatus.completed
    if start <= now:
        return EventStatus.ongoing
    return EventStatus.upcoming


def event_status(event, now: Optional[datetime] = None) -> EventStatus:
    """Status of an Event row at ``now`` (defaults to the current wall clock)."""
    return derive_status(
        start=event.start_time_utc,
        end=event.end_time_utc,
        now=now or datetime.now(timezone.utc),
        cancelled=event.cancelled_at is not None,
        open_ended_duration_hours=settings.OPEN_ENDED_EVENT_DURATION_HOURS,
    )
