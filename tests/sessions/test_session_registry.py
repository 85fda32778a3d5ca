from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from hr_identity.core.enums import SessionEndReason
from hr_identity.core.exceptions import ValidationError

TTL = timedelta(hours=24)


def test_open_session_is_live_until_expiry(registry, fixed_now):
    session = registry.open("emp_001", "fp-1", TTL, {"ip": "10.0.0.1"}, now=fixed_now)

    assert session.expires_at == fixed_now + TTL
    assert session.client_metadata == {"ip": "10.0.0.1"}
    assert registry.is_live("fp-1", now=fixed_now + TTL - timedelta(seconds=1))
    assert not registry.is_live("fp-1", now=fixed_now + TTL)


def test_expired_session_is_not_live_before_any_sweep(registry, session_repo, fixed_now):
    registry.open("emp_001", "fp-1", timedelta(minutes=5), now=fixed_now)

    assert not registry.is_live("fp-1", now=fixed_now + timedelta(minutes=6))
    # still flagged active in storage until the sweep runs
    assert session_repo.rows["fp-1"].is_active


def test_revoke_is_idempotent(registry, fixed_now):
    registry.open("emp_001", "fp-1", TTL, now=fixed_now)

    registry.revoke("fp-1", now=fixed_now + timedelta(minutes=1))
    first = registry.get("fp-1")
    registry.revoke("fp-1", now=fixed_now + timedelta(minutes=2))
    registry.revoke("unknown", now=fixed_now)
    registry.revoke("", now=fixed_now)

    assert not registry.is_live("fp-1", now=fixed_now + timedelta(minutes=1))
    assert registry.get("fp-1") == first
    assert first.ended_at == fixed_now + timedelta(minutes=1)
    assert first.end_reason == SessionEndReason.REVOKED


def test_revoke_all_leaves_other_identities_alone(registry, fixed_now):
    registry.open("emp_001", "a1", TTL, now=fixed_now)
    registry.open("emp_001", "a2", TTL, now=fixed_now)
    registry.open("emp_002", "b1", TTL, now=fixed_now)

    count = registry.revoke_all("emp_001", now=fixed_now)

    assert count == 2
    assert not registry.is_live("a1", now=fixed_now)
    assert not registry.is_live("a2", now=fixed_now)
    assert registry.is_live("b1", now=fixed_now)
    assert registry.revoke_all("emp_001", now=fixed_now) == 0


def test_revoke_all_can_keep_one_session(registry, fixed_now):
    registry.open("emp_001", "a1", TTL, now=fixed_now)
    registry.open("emp_001", "a2", TTL, now=fixed_now)

    count = registry.revoke_all("emp_001", except_fingerprint="a2", now=fixed_now)

    assert count == 1
    assert registry.is_live("a2", now=fixed_now)


def test_sweep_marks_expired_sessions(registry, fixed_now):
    short = registry.open("emp_001", "short", timedelta(hours=1), now=fixed_now)
    registry.open("emp_001", "long", TTL, now=fixed_now)
    registry.open("emp_002", "gone", TTL, now=fixed_now)
    registry.revoke("gone", now=fixed_now)

    swept = registry.sweep_expired(now=fixed_now + timedelta(hours=2))

    assert swept == 1
    ended = registry.get("short")
    assert not ended.is_active
    assert ended.ended_at == short.expires_at
    assert ended.end_reason == SessionEndReason.EXPIRED
    assert registry.is_live("long", now=fixed_now + timedelta(hours=2))
    assert registry.sweep_expired(now=fixed_now + timedelta(hours=2)) == 0


def test_stats_count_live_sessions_and_identities(registry, fixed_now):
    registry.open("emp_001", "a1", TTL, now=fixed_now)
    registry.open("emp_001", "a2", timedelta(minutes=1), now=fixed_now)
    registry.open("emp_002", "b1", TTL, now=fixed_now)
    registry.revoke("b1", now=fixed_now)

    stats = registry.stats(now=fixed_now + timedelta(minutes=5))

    assert (stats.total, stats.live, stats.identities) == (3, 1, 1)


def test_rotate_replaces_live_session(registry, fixed_now):
    registry.open("emp_001", "old", TTL, {"ua": "x"}, now=fixed_now)
    later = fixed_now + timedelta(hours=23)

    new = registry.rotate("old", "emp_001", "new", TTL, {"ua": "x"}, now=later)

    assert new is not None
    assert new.expires_at == later + TTL
    assert not registry.is_live("old", now=later)
    assert registry.get("old").end_reason == SessionEndReason.REVOKED
    assert registry.is_live("new", now=later)


def test_rotate_refuses_dead_session(registry, fixed_now):
    registry.open("emp_001", "old", TTL, now=fixed_now)
    registry.revoke("old", now=fixed_now)

    assert registry.rotate("old", "emp_001", "new", TTL, now=fixed_now) is None
    assert registry.get("new") is None


def test_rotate_refuses_other_identity(registry, fixed_now):
    registry.open("emp_001", "old", TTL, now=fixed_now)

    assert registry.rotate("old", "emp_002", "new", TTL, now=fixed_now) is None
    assert registry.is_live("old", now=fixed_now)


@pytest.mark.parametrize(
    "canonical_id, fp, ttl",
    [("", "fp", TTL), ("emp_001", "", TTL), ("emp_001", "fp", timedelta(0))],
)
def test_open_validates_input(registry, canonical_id, fp, ttl, fixed_now):
    with pytest.raises(ValidationError):
        registry.open(canonical_id, fp, ttl, now=fixed_now)


def test_revoke_all_racing_with_opens_leaves_no_earlier_session_live(registry, fixed_now):
    opened: list[str] = []
    start = threading.Barrier(2)

    def open_many():
        start.wait()
        for i in range(200):
            fp = f"fp-{i}"
            registry.open("emp_001", fp, TTL, now=fixed_now)
            opened.append(fp)

    worker = threading.Thread(target=open_many)
    worker.start()
    start.wait()
    before = list(opened)
    registry.revoke_all("emp_001", now=fixed_now)
    worker.join()

    # every session that existed when revoke_all started is gone
    assert all(not registry.is_live(fp, now=fixed_now) for fp in before)
    assert len(opened) == 200


def test_list_sessions_newest_first_with_live_filter(registry, fixed_now):
    registry.open("emp_001", "first", TTL, now=fixed_now)
    registry.open("emp_001", "second", timedelta(minutes=5), now=fixed_now + timedelta(minutes=1))
    registry.open("emp_001", "third", TTL, now=fixed_now + timedelta(minutes=2))
    registry.open("emp_002", "other", TTL, now=fixed_now)
    registry.revoke("third", now=fixed_now + timedelta(minutes=3))
    later = fixed_now + timedelta(minutes=10)

    everything = registry.list_sessions("emp_001", active_only=False, now=later)
    live = registry.list_sessions("emp_001", now=later)

    assert [s.token_fingerprint for s in everything] == ["third", "second", "first"]
    assert [s.token_fingerprint for s in live] == ["first"]
    assert [s.end_reason_at(later) for s in everything] == [
        SessionEndReason.REVOKED,
        SessionEndReason.EXPIRED,
        None,
    ]


def test_list_sessions_respects_limit(registry, fixed_now):
    for i in range(5):
        registry.open("emp_001", f"fp-{i}", TTL, now=fixed_now + timedelta(seconds=i))

    newest = registry.list_sessions("emp_001", limit=2, now=fixed_now)

    assert [s.token_fingerprint for s in newest] == ["fp-4", "fp-3"]


@pytest.mark.parametrize("limit", [0, -1, 101])
def test_list_sessions_rejects_bad_limit(registry, limit, fixed_now):
    with pytest.raises(ValidationError):
        registry.list_sessions("emp_001", limit=limit, now=fixed_now)
