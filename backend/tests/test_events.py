"""Tests for Event CRUD, invariants, and lifecycle enforcement.

Covers:
- Event create / update / cancel
- Authorization: admins/co-admins create; creator or admins modify
- Validation before persistence (time window, capacity, title)
- Optimistic locking: version mismatch -> 409
- Cancellation is terminal
- Derived status in responses and list filters
- Embedding generation is best-effort
"""
from datetime import datetime, timedelta, timezone

from app.models.embedding import EventEmbedding
from app.models.event import Event
from tests.conftest import create_test_community, create_test_user, join_community, make_event


def _setup(client):
    """Create an admin, a plain member, and a community with both."""
    admin = create_test_user(client, name="Admin")
    member = create_test_user(client, name="Member")
    community = create_test_community(client, admin["user_id"], name="Trail Club", tags=["hiking"])
    join_community(client, community["community_id"], member["user_id"])
    return admin, member, community


class TestEventCreate:
    """Event creation and initial state."""

    def test_create_event(self, client):
        admin, _, community = _setup(client)
        resp = make_event(client, community["community_id"], admin["user_id"], title="Sunrise Hike",
                          capacity=12, tags=["hiking", "Hiking", "outdoors"])
        assert resp.status_code == 201
        data = resp.json()
        assert data["title"] == "Sunrise Hike"
        assert data["version"] == 1
        assert data["status"] == "upcoming"
        assert data["going_count"] == 0
        assert data["spots_left"] == 12
        assert data["tags"] == ["hiking", "outdoors"]
        assert data["is_active"] is True

    def test_unlimited_capacity(self, client):
        admin, _, community = _setup(client)
        data = make_event(client, community["community_id"], admin["user_id"]).json()
        assert data["capacity"] is None
        assert data["spots_left"] is None

    def test_open_ended_event(self, client):
        admin, _, community = _setup(client)
        resp = make_event(client, community["community_id"], admin["user_id"], duration_hours=None)
        assert resp.status_code == 201
        assert resp.json()["end_time_utc"] is None

    def test_member_cannot_create(self, client):
        _, member, community = _setup(client)
        resp = make_event(client, community["community_id"], member["user_id"])
        assert resp.status_code == 403

    def test_outsider_cannot_create(self, client):
        _, _, community = _setup(client)
        outsider = create_test_user(client, name="Outsider")
        resp = make_event(client, community["community_id"], outsider["user_id"])
        assert resp.status_code == 403

    def test_co_admin_can_create(self, client):
        admin, _, community = _setup(client)
        helper = create_test_user(client, name="Helper")
        join_community(client, community["community_id"], helper["user_id"],
                       role="co-admin", actor_user_id=admin["user_id"])
        resp = make_event(client, community["community_id"], helper["user_id"])
        assert resp.status_code == 201

    def test_unknown_community(self, client):
        admin = create_test_user(client, name="Admin")
        resp = make_event(client, "no-such-community", admin["user_id"])
        assert resp.status_code == 404


class TestEventValidation:
    """Malformed input is rejected before anything is stored."""

    def test_end_before_start_rejected(self, client, db):
        admin, _, community = _setup(client)
        start = datetime.now(timezone.utc) + timedelta(days=1)
        resp = client.post("/api/events/", json={
            "community_id": community["community_id"],
            "created_by": admin["user_id"],
            "title": "Backwards",
            "start_time_utc": start.isoformat(),
            "end_time_utc": (start - timedelta(hours=1)).isoformat(),
        })
        assert resp.status_code == 422
        assert resp.json()["detail"]["field"] == "end_time_utc"
        assert db.query(Event).count() == 0

    def test_zero_capacity_rejected(self, client, db):
        admin, _, community = _setup(client)
        resp = make_event(client, community["community_id"], admin["user_id"], capacity=0)
        assert resp.status_code == 422
        assert db.query(Event).count() == 0

    def test_missing_start_rejected(self, client):
        admin, _, community = _setup(client)
        resp = client.post("/api/events/", json={
            "community_id": community["community_id"],
            "created_by": admin["user_id"],
            "title": "No start",
        })
        assert resp.status_code == 422

    def test_blank_title_rejected(self, client):
        admin, _, community = _setup(client)
        resp = make_event(client, community["community_id"], admin["user_id"], title="   ")
        assert resp.status_code == 422

    def test_validation_before_authorization(self, client):
        """A malformed request from a non-admin is a 422, and nothing is stored."""
        _, member, community = _setup(client)
        resp = make_event(client, community["community_id"], member["user_id"], capacity=-1)
        assert resp.status_code == 422


class TestEventUpdate:
    """Event update with authorization and optimistic locking."""

    def test_update_event_admin(self, client):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"title": "Renamed", "version": 1},
            params={"actor_user_id": admin["user_id"]},
        )
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed"
        assert resp.json()["version"] == 2

    def test_update_event_member_forbidden(self, client):
        admin, member, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"title": "Hijacked", "version": 1},
            params={"actor_user_id": member["user_id"]},
        )
        assert resp.status_code == 403

    def test_stale_version_conflicts(self, client):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        first = client.put(
            f"/api/events/{event['event_id']}",
            json={"title": "First", "version": 1},
            params={"actor_user_id": admin["user_id"]},
        )
        assert first.status_code == 200
        second = client.put(
            f"/api/events/{event['event_id']}",
            json={"title": "Second", "version": 1},
            params={"actor_user_id": admin["user_id"]},
        )
        assert second.status_code == 409

    def test_update_end_before_start_rejected(self, client):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        start = datetime.fromisoformat(event["start_time_utc"])
        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"end_time_utc": (start - timedelta(minutes=5)).isoformat(), "version": 1},
            params={"actor_user_id": admin["user_id"]},
        )
        assert resp.status_code == 422

    def test_null_required_field_rejected(self, client):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        for field in ("is_online", "is_active", "title", "tags"):
            resp = client.put(
                f"/api/events/{event['event_id']}",
                json={field: None, "version": 1},
                params={"actor_user_id": admin["user_id"]},
            )
            assert resp.status_code == 422, field
            assert resp.json()["detail"]["field"] == field

        resp = client.get(f"/api/events/{event['event_id']}")
        assert resp.json()["version"] == 1
        assert resp.json()["is_active"] is True

    def test_capacity_cannot_drop_below_going(self, client):
        admin, member, community = _setup(client)
        cid = community["community_id"]
        event = make_event(client, cid, admin["user_id"], capacity=5).json()
        client.post(f"/api/events/{event['event_id']}/rsvp", json={"user_id": admin["user_id"]})
        client.post(f"/api/events/{event['event_id']}/rsvp", json={"user_id": member["user_id"]})

        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"capacity": 1, "version": 1},
            params={"actor_user_id": admin["user_id"]},
        )
        assert resp.status_code == 422

        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"capacity": 2, "version": 1},
            params={"actor_user_id": admin["user_id"]},
        )
        assert resp.status_code == 200
        assert resp.json()["spots_left"] == 0


class TestEventCancel:
    """Cancellation is terminal and keeps the row."""

    def _cancel(self, client, event, actor_id, version=1):
        return client.post(f"/api/events/{event['event_id']}/cancel", json={
            "cancelled_by_user_id": actor_id,
            "cancel_reason": "Storm warning",
            "version": version,
        })

    def test_cancel_event(self, client):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        resp = self._cancel(client, event, admin["user_id"])
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "cancelled"
        assert data["cancelled_by_user_id"] == admin["user_id"]
        assert data["cancel_reason"] == "Storm warning"
        assert data["cancelled_at"] is not None

    def test_cancelled_event_still_retrievable(self, client):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        self._cancel(client, event, admin["user_id"])
        resp = client.get(f"/api/events/{event['event_id']}")
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

    def test_cancel_twice(self, client):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        self._cancel(client, event, admin["user_id"])
        resp = self._cancel(client, event, admin["user_id"], version=2)
        assert resp.status_code == 400

    def test_cannot_update_cancelled_event(self, client):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        self._cancel(client, event, admin["user_id"])
        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"title": "Back on", "version": 2},
            params={"actor_user_id": admin["user_id"]},
        )
        assert resp.status_code == 400

    def test_member_cannot_cancel(self, client):
        admin, member, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"]).json()
        resp = self._cancel(client, event, member["user_id"])
        assert resp.status_code == 403


class TestEventListing:
    """List filters, including derived status."""

    def test_status_filter(self, client):
        admin, _, community = _setup(client)
        cid = community["community_id"]
        make_event(client, cid, admin["user_id"], title="Past", start_offset_hours=-5, duration_hours=1)
        make_event(client, cid, admin["user_id"], title="Now", start_offset_hours=-1, duration_hours=2)
        make_event(client, cid, admin["user_id"], title="Later", start_offset_hours=24)

        def titles(status):
            resp = client.get("/api/events/", params={"community_id": cid, "status": status})
            assert resp.status_code == 200
            return [e["title"] for e in resp.json()]

        assert titles("completed") == ["Past"]
        assert titles("ongoing") == ["Now"]
        assert titles("upcoming") == ["Later"]

    def test_list_ordered_by_start(self, client):
        admin, _, community = _setup(client)
        cid = community["community_id"]
        make_event(client, cid, admin["user_id"], title="B", start_offset_hours=48)
        make_event(client, cid, admin["user_id"], title="A", start_offset_hours=24)
        titles = [e["title"] for e in client.get("/api/events/", params={"community_id": cid}).json()]
        assert titles == ["A", "B"]

    def test_get_nonexistent_event(self, client):
        assert client.get("/api/events/does-not-exist").status_code == 404


class TestEventEmbedding:
    """Embeddings are generated after commit and never block creation."""

    def test_embedding_stored(self, client, db, fake_embedder):
        admin, _, community = _setup(client)
        event = make_event(client, community["community_id"], admin["user_id"],
                           title="Yoga in the park", tags=["yoga"]).json()
        row = db.get(EventEmbedding, event["event_id"])
        assert row is not None
        assert row.vector[0] == 2.0  # "yoga" in title and tags

    def test_no_provider_still_creates(self, client, db):
        admin, _, community = _setup(client)
        resp = make_event(client, community["community_id"], admin["user_id"])
        assert resp.status_code == 201
        assert db.get(EventEmbedding, resp.json()["event_id"]) is None

    def test_provider_outage_still_creates(self, client, db, monkeypatch):
        from app.errors import DependencyUnavailable
        from app.services import embedding_service

        class TimeoutEmbedder:
            model = "slow"

            def embed(self, text):
                raise DependencyUnavailable("embedding provider", "timed out", retryable=True)

        monkeypatch.setattr(embedding_service, "default_embedder", lambda: TimeoutEmbedder())
        admin, _, community = _setup(client)
        resp = make_event(client, community["community_id"], admin["user_id"])
        assert resp.status_code == 201
        assert db.get(EventEmbedding, resp.json()["event_id"]) is None
