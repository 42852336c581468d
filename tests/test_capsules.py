"""
Tests for time capsules.

Covered scenarios:
  C) ordinary capsule with unlock_date = yesterday flips on the next list read
  P4) one motivational capsule per user (second attempt → 409)
  P5) once observed unlocked, a capsule stays unlocked

Additional:
  - the time-gate is lazy: a due capsule stays flagged locked in storage
    until the list is read
  - the motivational sentinel date never opens the capsule
  - locked capsules hide content
  - motivational capsule cannot be deleted; foreign ids are 404
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.clock import utcnow
from app.core.errors import (
    CapsuleNotFoundError,
    MotivationalCapsuleExistsError,
    MotivationalCapsuleProtectedError,
)
from app.models.time_capsule import TimeCapsule
from app.services.capsules import (
    MOTIVATIONAL_UNLOCK_SENTINEL,
    create_capsule,
    create_motivational_capsule,
    delete_capsule,
    get_motivational_capsule,
    list_capsules,
    release_due_capsules,
)

NOW = datetime(2031, 6, 1, 12, 0, tzinfo=timezone.utc)


def _stored(db, capsule_id) -> TimeCapsule:
    db.expire_all()
    return db.get(TimeCapsule, capsule_id)


# ---------------------------------------------------------------------------
# Time-gate
# ---------------------------------------------------------------------------

class TestTimeGate:
    def test_due_capsule_unlocks_on_read(self, db, user_id):
        capsule = create_capsule(
            db, user_id, title="Yesterday", content="hi", unlock_date=NOW - timedelta(days=1),
        )
        assert capsule.is_unlocked is False

        capsules, released = list_capsules(db, user_id, now=NOW)

        assert [c.id for c in released] == [capsule.id]
        assert _stored(db, capsule.id).is_unlocked is True

    def test_future_capsule_stays_locked(self, db, user_id):
        capsule = create_capsule(
            db, user_id, title="Tomorrow", content="hi", unlock_date=NOW + timedelta(days=1),
        )
        _, released = list_capsules(db, user_id, now=NOW)
        assert released == []
        assert _stored(db, capsule.id).is_unlocked is False

    def test_unlock_date_equal_to_now_unlocks(self, db, user_id):
        capsule = create_capsule(db, user_id, title="Exactly now", content="hi", unlock_date=NOW)
        release_due_capsules(db, user_id, now=NOW)
        assert _stored(db, capsule.id).is_unlocked is True

    def test_due_capsule_stays_flagged_until_next_read(self, db, user_id):
        # No scheduler: storage lags behind the clock until someone reads the list.
        capsule = create_capsule(
            db, user_id, title="Lazy", content="hi", unlock_date=NOW - timedelta(days=3),
        )
        assert _stored(db, capsule.id).is_unlocked is False
        list_capsules(db, user_id, now=NOW)
        assert _stored(db, capsule.id).is_unlocked is True

    def test_unlock_is_monotonic(self, db, user_id):
        capsule = create_capsule(
            db, user_id, title="Once", content="hi", unlock_date=NOW - timedelta(hours=1),
        )
        list_capsules(db, user_id, now=NOW)
        for later in (NOW + timedelta(days=1), NOW - timedelta(days=30)):
            capsules, released = list_capsules(db, user_id, now=later)
            assert released == []
            assert capsules[0].is_unlocked is True

    def test_only_callers_capsules_released(self, db, user_id):
        theirs = create_capsule(
            db, "someone-else", title="Theirs", content="x", unlock_date=NOW - timedelta(days=1),
        )
        release_due_capsules(db, user_id, now=NOW)
        assert _stored(db, theirs.id).is_unlocked is False

    def test_sentinel_never_opens_motivational(self, db, user_id):
        capsule = create_motivational_capsule(db, user_id, "You are stronger than you think.")
        assert capsule.unlock_date.replace(tzinfo=timezone.utc) == MOTIVATIONAL_UNLOCK_SENTINEL

        far_future = datetime(2150, 1, 1, tzinfo=timezone.utc)
        released = release_due_capsules(db, user_id, now=far_future)

        assert released == []
        assert _stored(db, capsule.id).is_unlocked is False


# ---------------------------------------------------------------------------
# Motivational capsule
# ---------------------------------------------------------------------------

class TestMotivationalCapsule:
    def test_create_defaults(self, db, user_id):
        capsule = create_motivational_capsule(db, user_id, "Breathe. This will pass.")
        assert capsule.title == "My Self-Care Message"
        assert capsule.is_motivational is True
        assert capsule.is_unlocked is False
        assert get_motivational_capsule(db, user_id).id == capsule.id

    def test_second_is_rejected(self, db, user_id):
        first = create_motivational_capsule(db, user_id, "one")
        with pytest.raises(MotivationalCapsuleExistsError) as exc_info:
            create_motivational_capsule(db, user_id, "two")
        assert exc_info.value.details["id"] == first.id
        count = (
            db.query(TimeCapsule)
            .filter(TimeCapsule.user_id == user_id, TimeCapsule.is_motivational.is_(True))
            .count()
        )
        assert count == 1

    def test_unique_index_backs_the_rule(self, db, user_id):
        create_motivational_capsule(db, user_id, "one")
        db.add(TimeCapsule(
            user_id=user_id, title="sneaky", content="two",
            is_motivational=True, is_unlocked=False, unlock_date=MOTIVATIONAL_UNLOCK_SENTINEL,
        ))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_users_have_independent_capsules(self, db, user_id):
        create_motivational_capsule(db, user_id, "mine")
        other = create_motivational_capsule(db, f"{user_id}-other", "theirs")
        assert other.is_motivational is True

    def test_cannot_delete_motivational(self, db, user_id):
        capsule = create_motivational_capsule(db, user_id, "keep me")
        with pytest.raises(MotivationalCapsuleProtectedError):
            delete_capsule(db, user_id, capsule.id)

    def test_delete_ordinary(self, db, user_id):
        capsule = create_capsule(db, user_id, title="bye", content="x", unlock_date=NOW)
        delete_capsule(db, user_id, capsule.id)
        assert _stored(db, capsule.id) is None

    def test_delete_foreign_is_not_found(self, db, user_id):
        capsule = create_capsule(db, "someone-else", title="x", content="x", unlock_date=NOW)
        with pytest.raises(CapsuleNotFoundError):
            delete_capsule(db, user_id, capsule.id)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

class TestCapsuleEndpoints:
    def test_create_and_list_scenario_c(self, client, auth_headers):
        yesterday = (utcnow() - timedelta(days=1)).isoformat()
        r = client.post(
            "/capsules",
            json={"title": "Past me", "content": "Hello from before", "unlock_date": yesterday},
            headers=auth_headers,
        )
        assert r.status_code == 201
        created = r.json()
        assert created["is_unlocked"] is False
        assert created["content"] is None

        r = client.get("/capsules", headers=auth_headers)
        assert r.status_code == 200
        data = r.json()
        assert data["total"] == 1
        assert data["newly_unlocked"] == 1
        assert data["items"][0]["is_unlocked"] is True
        assert data["items"][0]["content"] == "Hello from before"

        data = client.get("/capsules", headers=auth_headers).json()
        assert data["newly_unlocked"] == 0
        assert data["items"][0]["is_unlocked"] is True

    def test_naive_unlock_date_read_as_utc(self, client, auth_headers):
        r = client.post(
            "/capsules",
            json={"title": "Naive", "content": "x", "unlock_date": "2040-01-01T09:00:00"},
            headers=auth_headers,
        )
        assert r.status_code == 201
        assert r.json()["unlock_date"] == "2040-01-01T09:00:00+00:00"
        assert r.json()["created_at"].endswith("+00:00")

    def test_locked_capsule_hides_content(self, client, auth_headers):
        client.post(
            "/capsules",
            json={"title": "Later", "content": "secret", "unlock_date": "2045-01-01T00:00:00Z"},
            headers=auth_headers,
        )
        item = client.get("/capsules", headers=auth_headers).json()["items"][0]
        assert item["is_unlocked"] is False
        assert item["content"] is None

    def test_motivational_flow(self, client, auth_headers):
        r = client.get("/capsules/motivational", headers=auth_headers)
        assert r.json() == {"has_motivational_capsule": False, "is_unlocked": False, "capsule": None}

        r = client.post(
            "/capsules/motivational",
            json={"content": "You got through hard days before."},
            headers=auth_headers,
        )
        assert r.status_code == 201
        assert r.json()["title"] == "My Self-Care Message"

        status = client.get("/capsules/motivational", headers=auth_headers).json()
        assert status["has_motivational_capsule"] is True
        assert status["is_unlocked"] is False
        assert status["capsule"] is None

    def test_second_motivational_is_409(self, client, auth_headers):
        client.post("/capsules/motivational", json={"content": "one"}, headers=auth_headers)
        r = client.post("/capsules/motivational", json={"content": "two"}, headers=auth_headers)
        assert r.status_code == 409
        assert r.json()["code"] == "MOTIVATIONAL_CAPSULE_EXISTS"

    def test_delete_motivational_is_409(self, client, auth_headers):
        created = client.post(
            "/capsules/motivational", json={"content": "stay"}, headers=auth_headers,
        ).json()
        r = client.delete(f"/capsules/{created['id']}", headers=auth_headers)
        assert r.status_code == 409
        assert r.json()["code"] == "MOTIVATIONAL_CAPSULE_PROTECTED"

    def test_delete_unknown_is_404(self, client, auth_headers):
        r = client.delete("/capsules/999999", headers=auth_headers)
        assert r.status_code == 404
        assert r.json()["code"] == "CAPSULE_NOT_FOUND"
