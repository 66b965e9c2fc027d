"""Lease row in ``sync_lock`` guarding against overlapping full syncs."""
import logging
import os
import socket
import uuid
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from app.utils.db import transactional
from models import utcnow
from models.sync import SyncLock

logger = logging.getLogger(__name__)

FULL_SYNC_LOCK = "full_sync"


class SyncAlreadyRunning(Exception):
    def __init__(self, name: str, owner: str = None, expires_at=None):
        message = f"Sync '{name}' is already running"
        if owner:
            message += f" (held by {owner})"
        super().__init__(message)
        self.name = name
        self.owner = owner
        self.expires_at = expires_at


def new_owner_token() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


def acquire_sync_lock(session, ttl_seconds: int, name: str = FULL_SYNC_LOCK, owner: str = None) -> str:
    """Take the lease or raise SyncAlreadyRunning. Returns the owner token."""
    owner = owner or new_owner_token()
    now = utcnow()
    expires_at = now + timedelta(seconds=ttl_seconds)

    # An existing row is the normal "already running" case, not a DB failure
    session.add(SyncLock(name=name, owner=owner, acquired_at=now, expires_at=expires_at))
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
    else:
        logger.info({"event": "sync_lock_acquired", "lock": name, "owner": owner})
        return owner

    # Row exists; only an expired lease may be taken over
    with transactional(f"Failed to take over sync lock {name}", session):
        taken = session.query(SyncLock).filter(
            SyncLock.name == name,
            SyncLock.expires_at <= now,
        ).update(
            {"owner": owner, "acquired_at": now, "expires_at": expires_at},
            synchronize_session=False,
        )
    if taken:
        logger.warning({"event": "sync_lock_taken_over", "lock": name, "owner": owner})
        return owner

    holder = session.get(SyncLock, name)
    raise SyncAlreadyRunning(
        name,
        owner=holder.owner if holder else None,
        expires_at=holder.expires_at if holder else None,
    )


def release_sync_lock(session, owner: str, name: str = FULL_SYNC_LOCK) -> bool:
    with transactional(f"Failed to release sync lock {name}", session):
        released = session.query(SyncLock).filter_by(name=name, owner=owner).delete(synchronize_session=False)
    if released:
        logger.info({"event": "sync_lock_released", "lock": name, "owner": owner})
    return bool(released)


def renew_sync_lock(session, owner: str, ttl_seconds: int, name: str = FULL_SYNC_LOCK) -> None:
    """Push the lease expiry forward. Raises SyncAlreadyRunning if the lease was lost."""
    with transactional(f"Failed to renew sync lock {name}", session):
        renewed = session.query(SyncLock).filter_by(name=name, owner=owner).update(
            {"expires_at": utcnow() + timedelta(seconds=ttl_seconds)},
            synchronize_session=False,
        )
    if not renewed:
        holder = session.get(SyncLock, name)
        logger.warning({"event": "sync_lock_lost", "lock": name, "owner": owner})
        raise SyncAlreadyRunning(
            name,
            owner=holder.owner if holder else None,
            expires_at=holder.expires_at if holder else None,
        )
