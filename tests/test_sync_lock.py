from datetime import timedelta

import logging

import pytest

from app.services.sync_lock import SyncAlreadyRunning, acquire_sync_lock, release_sync_lock, renew_sync_lock
from models import SyncLock, utcnow


def test_acquire_and_release(session):
    owner = acquire_sync_lock(session, ttl_seconds=60)
    lock = session.get(SyncLock, "full_sync")
    assert lock.owner == owner
    assert lock.expires_at > utcnow()

    assert release_sync_lock(session, owner) is True
    assert SyncLock.query.count() == 0


def test_second_holder_is_refused(session):
    acquire_sync_lock(session, ttl_seconds=60, owner="worker-1")

    with pytest.raises(SyncAlreadyRunning) as exc:
        acquire_sync_lock(session, ttl_seconds=60, owner="worker-2")
    assert exc.value.owner == "worker-1"


def test_release_by_non_owner_is_a_noop(session):
    acquire_sync_lock(session, ttl_seconds=60, owner="worker-1")
    assert release_sync_lock(session, "worker-2") is False
    assert session.get(SyncLock, "full_sync").owner == "worker-1"


def test_expired_lease_can_be_taken_over(session):
    session.add(SyncLock(name="full_sync", owner="old", expires_at=utcnow() - timedelta(seconds=1)))
    session.commit()

    owner = acquire_sync_lock(session, ttl_seconds=60, owner="new")

    assert owner == "new"
    session.expire_all()
    assert session.get(SyncLock, "full_sync").owner == "new"


def test_refusal_is_not_logged_as_a_database_error(session, caplog):
    acquire_sync_lock(session, ttl_seconds=60, owner="worker-1")

    with caplog.at_level(logging.INFO):
        with pytest.raises(SyncAlreadyRunning):
            acquire_sync_lock(session, ttl_seconds=60, owner="worker-2")
    assert [r for r in caplog.records if r.levelno >= logging.ERROR] == []


def test_renew_pushes_expiry_forward(session):
    owner = acquire_sync_lock(session, ttl_seconds=1, owner="worker-1")
    session.expire_all()
    before = session.get(SyncLock, "full_sync").expires_at

    renew_sync_lock(session, owner, ttl_seconds=600)

    session.expire_all()
    assert session.get(SyncLock, "full_sync").expires_at > before + timedelta(seconds=500)


def test_renew_after_takeover_raises(session):
    session.add(SyncLock(name="full_sync", owner="slow", expires_at=utcnow() - timedelta(seconds=1)))
    session.commit()
    acquire_sync_lock(session, ttl_seconds=60, owner="fast")

    with pytest.raises(SyncAlreadyRunning) as exc:
        renew_sync_lock(session, "slow", ttl_seconds=60)
    assert exc.value.owner == "fast"
