"""
10xBadger
Promotion domain model.

Models:
    - Promotion: a user's promotion package built from one template.
    - PromotionBadge: reservation of an accepted badge application by a promotion.

Status machine:
    draft → submitted → approved | rejected     (approved / rejected are terminal)

Reservation exclusivity is enforced by the database: a partial unique
index allows at most one *unconsumed* reservation per badge application.
Approval flips the promotion's reservations to consumed; rejection
deletes them.
"""

from badger.models import _iso, _utcnow, _uuid, db

# ── Constants ─────────────────────────────────────────────────────────────────

PROMOTION_STATUSES = ("draft", "submitted", "approved", "rejected")

ACTIVE_RESERVATION_INDEX = "uq_promotion_badges_active_badge_application"


class Promotion(db.Model):
    __tablename__ = "promotions"
    __table_args__ = (
        db.Index("ix_promotions_created_by_status", "created_by", "status"),
        db.Index("ix_promotions_template", "template_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    template_id = db.Column(
        db.String(36), db.ForeignKey("promotion_templates.id", ondelete="RESTRICT"), nullable=False,
    )
    created_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Copied from the template at creation
    path = db.Column(db.String(20), nullable=False)
    from_level = db.Column(db.String(20), nullable=False)
    to_level = db.Column(db.String(20), nullable=False)

    status = db.Column(db.String(20), nullable=False, default="draft")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejected_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reject_reason = db.Column(db.Text, nullable=True)
    executed = db.Column(db.Boolean, nullable=False, default=False)

    template = db.relationship("PromotionTemplate", lazy="joined")
    creator = db.relationship("User", foreign_keys=[created_by], lazy="select")
    badges = db.relationship(
        "PromotionBadge",
        back_populates="promotion",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PromotionBadge.assigned_at",
    )

    @property
    def badge_count(self) -> int:
        return len(self.badges)

    def to_dict(self, include_details: bool = False) -> dict:
        d = {
            "id": self.id,
            "template_id": self.template_id,
            "created_by": self.created_by,
            "path": self.path,
            "from_level": self.from_level,
            "to_level": self.to_level,
            "status": self.status,
            "badge_count": self.badge_count,
            "created_at": _iso(self.created_at),
            "submitted_at": _iso(self.submitted_at),
            "approved_at": _iso(self.approved_at),
            "approved_by": self.approved_by,
            "rejected_at": _iso(self.rejected_at),
            "rejected_by": self.rejected_by,
            "reject_reason": self.reject_reason,
            "executed": self.executed,
        }
        if include_details:
            d["template"] = self.template.to_dict() if self.template else None
            d["badge_applications"] = [
                pb.badge_application.to_dict(include_catalog_badge=True)
                for pb in self.badges
                if pb.badge_application is not None
            ]
            d["creator"] = (
                {
                    "id": self.creator.id,
                    "display_name": self.creator.display_name,
                    "email": self.creator.email,
                }
                if self.creator
                else None
            )
        return d

    def __repr__(self):
        return f"<Promotion {self.id}: {self.path} {self.from_level}->{self.to_level} [{self.status}]>"


class PromotionBadge(db.Model):
    """
    Reservation of one badge application by one promotion.

    ``consumed`` becomes True when the owning promotion is approved; the
    partial unique index only covers unconsumed rows, so consumed history
    never blocks anything (the badge itself is ``used_in_promotion`` by then).
    """

    __tablename__ = "promotion_badges"
    __table_args__ = (
        db.UniqueConstraint("promotion_id", "badge_application_id", name="uq_promotion_badges_pair"),
        db.Index(
            ACTIVE_RESERVATION_INDEX,
            "badge_application_id",
            unique=True,
            sqlite_where=db.text("consumed = 0"),
            postgresql_where=db.text("consumed = false"),
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    promotion_id = db.Column(
        db.String(36), db.ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    badge_application_id = db.Column(
        db.String(36), db.ForeignKey("badge_applications.id", ondelete="CASCADE"), nullable=False,
    )
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    assigned_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    consumed = db.Column(db.Boolean, nullable=False, default=False)

    promotion = db.relationship("Promotion", back_populates="badges")
    badge_application = db.relationship("BadgeApplication", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "promotion_id": self.promotion_id,
            "badge_application_id": self.badge_application_id,
            "assigned_at": _iso(self.assigned_at),
            "assigned_by": self.assigned_by,
            "consumed": self.consumed,
        }

    def __repr__(self):
        return f"<PromotionBadge {self.promotion_id}/{self.badge_application_id}>"
