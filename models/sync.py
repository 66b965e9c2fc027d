from models import db, utcnow


class SyncLog(db.Model):
    """Append-only provenance of every write a sync performed."""

    __tablename__ = "sync_log"
    __table_args__ = (
        db.Index("ix_sync_log_entity", "entity_type", "entity_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(20), nullable=False)      # product, category, brand
    entity_id = db.Column(db.String(140), nullable=False)
    action = db.Column(db.String(20), nullable=False)           # create, update, delete
    status = db.Column(db.String(20), nullable=False)           # success, error
    error_message = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


class SyncState(db.Model):
    __tablename__ = "sync_state"

    entity_type = db.Column(db.String(20), primary_key=True)
    last_sync_at = db.Column(db.DateTime, nullable=True)
    last_modified = db.Column(db.DateTime, nullable=True)
    cursor = db.Column(db.String(255), nullable=True)

    def as_dict(self):
        return {
            "entity_type": self.entity_type,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "cursor": self.cursor,
        }


class SyncLock(db.Model):
    """Lease row held by the process running a full sync."""

    __tablename__ = "sync_lock"

    name = db.Column(db.String(50), primary_key=True)
    owner = db.Column(db.String(64), nullable=False)
    acquired_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
