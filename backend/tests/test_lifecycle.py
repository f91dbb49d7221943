"""Tests for status derivation from (start, end, now)."""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.config import settings
from app.services.lifecycle import EventStatus, as_utc, derive_status, event_status

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestDeriveStatus:
    """Status is a pure function of the schedule and the clock."""

    def test_ongoing_between_start_and_end(self):
        status = derive_status(NOW - timedelta(hours=1), NOW + timedelta(hours=1), NOW)
        assert status == EventStatus.ongoing

    def test_completed_after_end(self):
        status = derive_status(NOW - timedelta(hours=2), NOW - timedelta(minutes=1), NOW)
        assert status == EventStatus.completed

    def test_upcoming_before_start(self):
        status = derive_status(NOW + timedelta(minutes=1), NOW + timedelta(hours=2), NOW)
        assert status == EventStatus.upcoming

    def test_boundaries(self):
        start, end = NOW, NOW + timedelta(hours=1)
        assert derive_status(start, end, start) == EventStatus.ongoing
        assert derive_status(start, end, end) == EventStatus.completed

    def test_cancelled_wins(self):
        for offset in (-3, 0, 3):
            start = NOW + timedelta(hours=offset)
            assert derive_status(start, start + timedelta(hours=1), NOW, cancelled=True) == EventStatus.cancelled

    def test_open_ended_never_completes_by_default(self):
        status = derive_status(NOW - timedelta(days=30), None, NOW)
        assert status == EventStatus.ongoing

    def test_open_ended_with_configured_duration(self):
        start = NOW - timedelta(hours=4)
        assert derive_status(start, None, NOW, open_ended_duration_hours=3) == EventStatus.completed
        assert derive_status(start, None, NOW, open_ended_duration_hours=6) == EventStatus.ongoing

    def test_naive_datetimes_treated_as_utc(self):
        naive_start = (NOW - timedelta(hours=1)).replace(tzinfo=None)
        naive_end = (NOW + timedelta(hours=1)).replace(tzinfo=None)
        assert derive_status(naive_start, naive_end, NOW) == EventStatus.ongoing

    def test_other_timezones_normalized(self):
        plus_two = timezone(timedelta(hours=2))
        start = datetime(2026, 5, 1, 13, 30, tzinfo=plus_two)  # 11:30 UTC
        assert as_utc(start) == datetime(2026, 5, 1, 11, 30, tzinfo=timezone.utc)
        assert derive_status(start, start + timedelta(hours=1), NOW) == EventStatus.ongoing

    @pytest.mark.parametrize("start_offset", [-48, -2, -1, 0, 1, 2, 48])
    @pytest.mark.parametrize("duration", [None, 0.5, 1, 3])
    def test_exactly_one_status_and_stable(self, start_offset, duration):
        start = NOW + timedelta(hours=start_offset)
        end = start + timedelta(hours=duration) if duration is not None else None
        first = derive_status(start, end, NOW)
        assert first in {EventStatus.upcoming, EventStatus.ongoing, EventStatus.completed}
        assert all(derive_status(start, end, NOW) == first for _ in range(3))


class TestEventStatus:
    """event_status reads the row and the configured open-ended duration."""

    def _event(self, start, end=None, cancelled_at=None):
        return SimpleNamespace(start_time_utc=start, end_time_utc=end, cancelled_at=cancelled_at)

    def test_reads_cancellation_marker(self):
        event = self._event(NOW + timedelta(hours=1), cancelled_at=NOW)
        assert event_status(event, NOW) == EventStatus.cancelled

    def test_uses_configured_duration(self, monkeypatch):
        event = self._event(NOW - timedelta(hours=5))
        assert event_status(event, NOW) == EventStatus.ongoing
        monkeypatch.setattr(settings, "OPEN_ENDED_EVENT_DURATION_HOURS", 2.0)
        assert event_status(event, NOW) == EventStatus.completed

    def test_api_reports_live_status(self, client):
        from tests.conftest import create_test_community, create_test_user, make_event

        admin = create_test_user(client, name="Admin")
        community = create_test_community(client, admin["user_id"])
        ongoing = make_event(client, community["community_id"], admin["user_id"],
                             start_offset_hours=-1, duration_hours=2).json()
        completed = make_event(client, community["community_id"], admin["user_id"],
                               start_offset_hours=-3, duration_hours=3 - 1 / 60).json()
        assert ongoing["status"] == "ongoing"
        assert completed["status"] == "completed"
