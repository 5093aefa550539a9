"""
10xBadger
Promotion template model.

A template defines the badge requirements for one career-path level
transition. ``rules`` is stored as a JSON array of
``{"category": <category|"any">, "level": <level>, "count": <int>}``;
``badger.services.rules`` parses it into typed rules.
"""

from badger.models import _iso, _utcnow, _uuid, db

PROMOTION_PATHS = ("technical", "financial", "management")


class PromotionTemplate(db.Model):
    __tablename__ = "promotion_templates"
    __table_args__ = (
        db.UniqueConstraint("path", "from_level", "to_level", name="uq_promotion_templates_transition"),
        db.Index("ix_promotion_templates_active", "is_active"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    path = db.Column(db.String(20), nullable=False, comment="technical | financial | management")
    from_level = db.Column(db.String(20), nullable=False)
    to_level = db.Column(db.String(20), nullable=False)
    rules = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "from_level": self.from_level,
            "to_level": self.to_level,
            "rules": list(self.rules or []),
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<PromotionTemplate {self.id}: {self.path} {self.from_level}->{self.to_level}>"
