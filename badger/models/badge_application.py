"""
10xBadger
Badge application model.

Lifecycle:
    draft → submitted → accepted | rejected
    accepted → used_in_promotion   (only when an approved promotion consumes it)

Category, level and catalog version are snapshotted at creation time so
later catalog edits never change what an application counts towards.
"""

from badger.models import _iso, _utcnow, _uuid, db

# ── Constants ─────────────────────────────────────────────────────────────────

BADGE_APPLICATION_STATUSES = ("draft", "submitted", "accepted", "rejected", "used_in_promotion")


class BadgeApplication(db.Model):
    __tablename__ = "badge_applications"
    __table_args__ = (
        db.Index("ix_badge_applications_applicant_status", "applicant_id", "status"),
        db.Index("ix_badge_applications_catalog_badge", "catalog_badge_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    applicant_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    catalog_badge_id = db.Column(
        db.String(36), db.ForeignKey("catalog_badges.id", ondelete="RESTRICT"), nullable=False,
    )

    # Snapshot of the catalog badge at application time
    catalog_badge_version = db.Column(db.Integer, nullable=False, default=1)
    category = db.Column(db.String(20), nullable=False)
    level = db.Column(db.String(10), nullable=False)

    status = db.Column(db.String(20), nullable=False, default="draft")
    date_of_application = db.Column(db.Date, nullable=False)
    date_of_fulfillment = db.Column(db.Date, nullable=True)
    reason = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Reviewer metadata
    reviewed_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    decision_note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    catalog_badge = db.relationship("CatalogBadge", lazy="joined")

    def to_dict(self, include_catalog_badge: bool = False) -> dict:
        d = {
            "id": self.id,
            "applicant_id": self.applicant_id,
            "catalog_badge_id": self.catalog_badge_id,
            "catalog_badge_version": self.catalog_badge_version,
            "category": self.category,
            "level": self.level,
            "status": self.status,
            "date_of_application": _iso(self.date_of_application),
            "date_of_fulfillment": _iso(self.date_of_fulfillment),
            "reason": self.reason,
            "submitted_at": _iso(self.submitted_at),
            "reviewed_by": self.reviewed_by,
            "reviewed_at": _iso(self.reviewed_at),
            "decision_note": self.decision_note,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_catalog_badge and self.catalog_badge is not None:
            d["catalog_badge"] = {
                "id": self.catalog_badge.id,
                "title": self.catalog_badge.title,
                "category": self.catalog_badge.category,
                "level": self.catalog_badge.level,
            }
        return d

    def __repr__(self):
        return f"<BadgeApplication {self.id}: {self.category}/{self.level} [{self.status}]>"
