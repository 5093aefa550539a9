"""
10xBadger
Notification model.

One record per recipient per event. ``recipient_id`` is a user id, or
``"admins"`` for a broadcast to every administrator.
"""

from badger.models import _iso, _utcnow, _uuid, db

ADMIN_BROADCAST = "admins"


class Notification(db.Model):
    """In-app notification entity."""

    __tablename__ = "notifications"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    recipient_id = db.Column(db.String(36), nullable=False, index=True, comment="users.id or 'admins'")
    event_type = db.Column(db.String(60), nullable=False)
    title = db.Column(db.String(300), nullable=False)
    message = db.Column(db.Text, default="")
    promotion_id = db.Column(
        db.String(36), db.ForeignKey("promotions.id", ondelete="CASCADE"), nullable=True, index=True,
    )

    # Read tracking
    is_read = db.Column(db.Boolean, default=False)
    read_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def mark_read(self):
        self.is_read = True
        self.read_at = _utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "recipient_id": self.recipient_id,
            "event_type": self.event_type,
            "title": self.title,
            "message": self.message,
            "promotion_id": self.promotion_id,
            "is_read": self.is_read,
            "read_at": _iso(self.read_at),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Notification {self.id}: {self.title[:40]}>"
