"""
10xBadger
Audit and error log models.

Models:
    - AuditLog: append-only trail of domain events (badge application and
      promotion lifecycle, reservation conflicts, auth failures).
    - ErrorLog: best-effort sink for unexpected server errors.
"""

from badger.models import _iso, _utcnow, _uuid, db

# ── Constants ────────────────────────────────────────────────────────────────

AUDIT_EVENT_TYPES = {
    "auth.failure",
    "reservation.conflict",
    # Badge application lifecycle
    "badge_application.created",
    "badge_application.submitted",
    "badge_application.accepted",
    "badge_application.rejected",
    # Promotion lifecycle
    "promotion.created",
    "promotion.submitted",
    "promotion.approved",
    "promotion.rejected",
    # Admin
    "promotion_template.created",
    "promotion_template.updated",
    "promotion_template.deactivated",
    "catalog_badge.created",
    "catalog_badge.deactivated",
}


class AuditLog(db.Model):
    """
    Immutable audit trail. One row per event; ``payload`` holds the
    event-specific identifiers and before/after values.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_event_type", "event_type"),
        db.Index("ix_audit_logs_actor", "actor_id"),
        db.Index("ix_audit_logs_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    actor_id = db.Column(db.String(36), nullable=True, comment="users.id, or NULL for system/anonymous")
    event_type = db.Column(db.String(60), nullable=False)
    payload = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "event_type": self.event_type,
            "payload": self.payload or {},
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<AuditLog {self.id}: {self.event_type}>"


class ErrorLog(db.Model):
    __tablename__ = "error_logs"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    route = db.Column(db.String(300), nullable=False)
    error_code = db.Column(db.String(60), nullable=False)
    message = db.Column(db.Text, nullable=False)
    payload = db.Column(db.JSON, nullable=True)
    requester_id = db.Column(db.String(36), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "route": self.route,
            "error_code": self.error_code,
            "message": self.message,
            "payload": self.payload,
            "requester_id": self.requester_id,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<ErrorLog {self.id}: {self.error_code} {self.route}>"


# ── Convenience writer ───────────────────────────────────────────────────────

def write_audit(*, event_type: str, actor_id: str | None = None, payload: dict | None = None) -> AuditLog:
    """
    Append a single audit row.  Uses ``flush`` so callers keep
    transaction control.

    Returns the (flushed) AuditLog instance.
    """
    if event_type not in AUDIT_EVENT_TYPES:
        raise ValueError(f"Unknown audit event type: {event_type}")
    entry = AuditLog(actor_id=actor_id, event_type=event_type, payload=payload or {})
    db.session.add(entry)
    db.session.flush()
    return entry
