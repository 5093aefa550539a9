"""
10xBadger
Badge catalog model.

Catalog badges are the skill badges employees may apply for. Each has a
category and a level; promotion template rules are expressed in the same
(category, level) vocabulary.
"""

from badger.models import _iso, _utcnow, _uuid, db

# ── Constants ─────────────────────────────────────────────────────────────────

BADGE_CATEGORIES = ("technical", "organizational", "softskilled")
BADGE_LEVELS = ("gold", "silver", "bronze")
CATALOG_STATUSES = ("active", "inactive")


class CatalogBadge(db.Model):
    """
    A badge definition in the catalog.

    Deactivation is soft: the row stays so existing applications keep
    their reference. ``version`` lets applications snapshot which
    revision of the badge they were made against.
    """

    __tablename__ = "catalog_badges"
    __table_args__ = (
        db.Index("ix_catalog_badges_category_level", "category", "level"),
        db.Index("ix_catalog_badges_status", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(20), nullable=False, comment="technical | organizational | softskilled")
    level = db.Column(db.String(10), nullable=False, comment="gold | silver | bronze")
    metadata_json = db.Column("metadata", db.JSON, nullable=True, default=dict)
    status = db.Column(db.String(10), nullable=False, default="active")
    version = db.Column(db.Integer, nullable=False, default=1)
    created_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    deactivated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "level": self.level,
            "metadata": self.metadata_json or {},
            "status": self.status,
            "version": self.version,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "deactivated_at": _iso(self.deactivated_at),
        }

    def __repr__(self):
        return f"<CatalogBadge {self.id}: {self.title}>"
