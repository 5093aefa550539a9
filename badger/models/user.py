"""
10xBadger
User model.

Identity is issued by the external auth provider; the row mirrors the
provider's user id (the JWT ``sub``) and carries the admin flag.
"""

from badger.models import _iso, _utcnow, db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, comment="Auth provider user id (JWT sub)")
    email = db.Column(db.String(255), nullable=False, unique=True)
    display_name = db.Column(db.String(200), nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    last_seen_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "is_admin": self.is_admin,
            "created_at": _iso(self.created_at),
            "last_seen_at": _iso(self.last_seen_at),
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"
