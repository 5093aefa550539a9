"""
Promotion Service — reservation, validation and status transitions.

Owns every write to ``promotions`` and ``promotion_badges``.

Reservation model:
    A promotion reserves accepted badge applications through
    ``PromotionBadge`` rows.  The partial unique index on
    ``promotion_badges(badge_application_id) WHERE consumed = false``
    is the authoritative exclusivity guard; the pre-checks below only
    exist to produce precise errors in the common, uncontended case.

Status machine:
    draft ──submit──▶ submitted ──approve──▶ approved   (reservations consumed,
                                  │                        badges used_in_promotion)
                                  └─reject──▶ rejected   (reservations deleted,
                                                           badges stay accepted)

    Approve / reject / submit are single conditional UPDATEs guarded on the
    expected current status; zero affected rows means another request got
    there first.

Layer contract:
    - Raises ``badger.core.exceptions`` types; never builds HTTP responses.
    - Commits its own transaction; notifications go out after commit.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from badger.core.context import RequestContext
from badger.core.exceptions import (
    BadgeNotAcceptedError,
    BadgeNotFoundError,
    ConflictError,
    ForbiddenError,
    InvalidStatusError,
    InvalidStatusTransitionError,
    NotFoundError,
    NotInPromotionError,
    ReservationConflictError,
    ValidationFailedError,
)
from badger.models import _utcnow, db
from badger.models.audit import write_audit
from badger.models.badge_application import BadgeApplication
from badger.models.promotion import Promotion, PromotionBadge
from badger.models.promotion_template import PromotionTemplate
from badger.services import audit_service
from badger.services.notification import NotificationService
from badger.services.rules import Evaluation, evaluate_rules, parse_rules

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "submitted_at")


# ── Private helpers ────────────────────────────────────────────────────────────


def _load(promotion_id: str) -> Promotion:
    promotion = db.session.get(Promotion, promotion_id)
    if promotion is None:
        raise NotFoundError("Promotion", promotion_id)
    return promotion


def _load_visible(promotion_id: str, ctx: RequestContext) -> Promotion:
    """Owner or admin may read; anyone else gets the same 404 as a missing row."""
    promotion = _load(promotion_id)
    if promotion.created_by != ctx.user_id and not ctx.is_admin:
        raise NotFoundError("Promotion", promotion_id)
    return promotion


def _require_editable(promotion: Promotion, ctx: RequestContext) -> None:
    if promotion.created_by != ctx.user_id:
        raise ForbiddenError("You do not have permission to modify this promotion")
    if promotion.status != "draft":
        raise ForbiddenError(
            f"Promotion is not in draft status: {promotion.id} (current: {promotion.status})"
        )


def _reserved_badge_applications(promotion_id: str) -> list[BadgeApplication]:
    return (
        BadgeApplication.query
        .join(PromotionBadge, PromotionBadge.badge_application_id == BadgeApplication.id)
        .filter(PromotionBadge.promotion_id == promotion_id)
        .all()
    )


def _evaluate(promotion: Promotion) -> Evaluation:
    template = promotion.template or db.session.get(PromotionTemplate, promotion.template_id)
    if template is None:
        raise NotFoundError("Promotion template", promotion.template_id)
    rules = parse_rules(template.rules)
    badges = [(ba.category, ba.level) for ba in _reserved_badge_applications(promotion.id)]
    return evaluate_rules(rules, badges)


def _claim(promotion_id: str, expected_status: str, values: dict) -> None:
    """Conditionally move a promotion out of *expected_status*.

    Raises:
        ConflictError: the row was no longer in *expected_status*.
    """
    updated = (
        Promotion.query
        .filter(Promotion.id == promotion_id, Promotion.status == expected_status)
        .update(values, synchronize_session=False)
    )
    if updated == 0:
        db.session.rollback()
        raise ConflictError(
            f"Promotion {promotion_id} was processed by another request",
            resource="Promotion",
        )


def _holders(badge_application_ids: list[str]) -> dict[str, str]:
    """Map badge_application_id -> promotion_id for active reservations."""
    return {
        pb.badge_application_id: pb.promotion_id
        for pb in PromotionBadge.query.filter(
            PromotionBadge.badge_application_id.in_(badge_application_ids),
            PromotionBadge.consumed.is_(False),
        ).all()
    }


def _owning_promotion(badge_application_ids: list[str]) -> tuple[str, str | None]:
    """Return (badge_application_id, promotion_id) of the first active reservation found."""
    row = (
        PromotionBadge.query
        .filter(
            PromotionBadge.badge_application_id.in_(badge_application_ids),
            PromotionBadge.consumed.is_(False),
        )
        .order_by(PromotionBadge.assigned_at)
        .first()
    )
    if row is None:
        return badge_application_ids[0], None
    return row.badge_application_id, row.promotion_id


def _record_conflict(promotion_id: str, badge_application_id: str, owning_promotion_id, ctx) -> None:
    logger.info(
        "Reservation conflict on badge application %s (held by %s)",
        badge_application_id, owning_promotion_id,
        extra={"promotion_id": promotion_id, "badge_application_id": badge_application_id,
               "user_id": ctx.user_id},
    )
    audit_service.record_event(
        "reservation.conflict",
        actor_id=ctx.user_id,
        payload={
            "promotion_id": promotion_id,
            "badge_application_id": badge_application_id,
            "owning_promotion_id": owning_promotion_id,
        },
    )


# ── CRUD ───────────────────────────────────────────────────────────────────────


def create_promotion(template_id: str, ctx: RequestContext) -> Promotion:
    """Create a draft promotion from an active template, copying path and levels."""
    template = db.session.get(PromotionTemplate, template_id)
    if template is None or not template.is_active:
        raise NotFoundError("Promotion template", template_id, message="Template not found")

    promotion = Promotion(
        template_id=template.id,
        created_by=ctx.user_id,
        path=template.path,
        from_level=template.from_level,
        to_level=template.to_level,
        status="draft",
        executed=False,
    )
    db.session.add(promotion)
    db.session.flush()
    write_audit(
        event_type="promotion.created",
        actor_id=ctx.user_id,
        payload={"promotion_id": promotion.id, "template_id": template.id},
    )
    db.session.commit()

    logger.info("Promotion created", extra={"promotion_id": promotion.id, "template_id": template.id,
                                            "user_id": ctx.user_id})
    return promotion


def promotions_query(
    ctx: RequestContext,
    *,
    status: str | None = None,
    path: str | None = None,
    template_id: str | None = None,
    created_by: str | None = None,
    sort: str = "created_at",
    order: str = "desc",
):
    """Build the list query. Non-admins only ever see their own promotions."""
    q = Promotion.query
    if not ctx.is_admin:
        q = q.filter(Promotion.created_by == ctx.user_id)
    elif created_by:
        q = q.filter(Promotion.created_by == created_by)
    if status:
        q = q.filter(Promotion.status == status)
    if path:
        q = q.filter(Promotion.path == path)
    if template_id:
        q = q.filter(Promotion.template_id == template_id)

    column = getattr(Promotion, sort if sort in SORTABLE_FIELDS else "created_at")
    q = q.order_by(column.asc() if order == "asc" else column.desc(), Promotion.id)
    return q


def get_promotion(promotion_id: str, ctx: RequestContext) -> Promotion:
    return _load_visible(promotion_id, ctx)


def delete_promotion(promotion_id: str, ctx: RequestContext) -> None:
    """Delete a draft promotion owned by the requester; reservations cascade."""
    promotion = _load(promotion_id)
    if promotion.status != "draft":
        raise InvalidStatusError(
            f"Only draft promotions can be deleted. Current status: {promotion.status}",
            current_status=promotion.status,
        )
    if promotion.created_by != ctx.user_id:
        raise ForbiddenError("You do not have permission to delete this promotion")

    db.session.delete(promotion)
    db.session.commit()
    logger.info("Promotion deleted", extra={"promotion_id": promotion_id, "user_id": ctx.user_id})


# ── Reservations ───────────────────────────────────────────────────────────────


def add_badges(promotion_id: str, badge_application_ids: list[str], ctx: RequestContext) -> dict:
    """Reserve badge applications for a draft promotion, all or nothing.

    Ids already reserved by this promotion are skipped.  The first failing id
    aborts the whole request and nothing is written.

    Raises:
        NotFoundError, ForbiddenError, BadgeNotFoundError, BadgeNotAcceptedError,
        ReservationConflictError
    """
    promotion = _load(promotion_id)
    _require_editable(promotion, ctx)

    applications = {
        ba.id: ba
        for ba in BadgeApplication.query.filter(BadgeApplication.id.in_(badge_application_ids)).all()
    }
    holders = _holders(badge_application_ids)

    to_reserve = []
    for badge_application_id in badge_application_ids:
        application = applications.get(badge_application_id)
        if application is None:
            raise BadgeNotFoundError(badge_application_id)
        if application.status != "accepted":
            raise BadgeNotAcceptedError(badge_application_id, application.status)
        holder = holders.get(badge_application_id)
        if holder == promotion_id:
            continue
        if holder is not None:
            _record_conflict(promotion_id, badge_application_id, holder, ctx)
            raise ReservationConflictError(badge_application_id, holder)
        to_reserve.append(badge_application_id)

    if to_reserve:
        try:
            for badge_application_id in to_reserve:
                db.session.add(PromotionBadge(
                    promotion_id=promotion_id,
                    badge_application_id=badge_application_id,
                    assigned_by=ctx.user_id,
                    consumed=False,
                ))
            db.session.commit()
        except IntegrityError:
            # Lost a race against another reservation of the same badge
            db.session.rollback()
            badge_application_id, holder = _owning_promotion(to_reserve)
            _record_conflict(promotion_id, badge_application_id, holder, ctx)
            raise ReservationConflictError(badge_application_id, holder)

    logger.info(
        "Reserved %d badge application(s)", len(to_reserve),
        extra={"promotion_id": promotion_id, "user_id": ctx.user_id},
    )
    return {
        "promotion_id": promotion_id,
        "added_count": len(to_reserve),
        "badge_application_ids": to_reserve,
        "message": f"{len(to_reserve)} badge(s) added successfully",
    }


def remove_badges(promotion_id: str, badge_application_ids: list[str], ctx: RequestContext) -> dict:
    """Release reservations held by a draft promotion, all or nothing.

    Raises:
        NotFoundError, ForbiddenError, NotInPromotionError
    """
    promotion = _load(promotion_id)
    _require_editable(promotion, ctx)

    reserved = {
        pb.badge_application_id
        for pb in PromotionBadge.query.filter(
            PromotionBadge.promotion_id == promotion_id,
            PromotionBadge.badge_application_id.in_(badge_application_ids),
        ).all()
    }
    for badge_application_id in badge_application_ids:
        if badge_application_id not in reserved:
            raise NotInPromotionError(promotion_id, badge_application_id)

    removed = (
        PromotionBadge.query
        .filter(
            PromotionBadge.promotion_id == promotion_id,
            PromotionBadge.badge_application_id.in_(badge_application_ids),
        )
        .delete(synchronize_session=False)
    )
    db.session.commit()

    logger.info(
        "Released %d badge application(s)", removed,
        extra={"promotion_id": promotion_id, "user_id": ctx.user_id},
    )
    return {
        "promotion_id": promotion_id,
        "removed_count": removed,
        "message": f"{removed} badge(s) removed successfully",
    }


# ── Validation ─────────────────────────────────────────────────────────────────


def validate(promotion_id: str, ctx: RequestContext) -> dict:
    """Evaluate the promotion's reserved badges against its template. Read-only."""
    promotion = _load_visible(promotion_id, ctx)
    evaluation = _evaluate(promotion)
    return {
        "promotion_id": promotion.id,
        "is_valid": evaluation.is_valid,
        "requirements": [r.to_dict() for r in evaluation.requirements],
        "missing": evaluation.missing,
    }


# ── Status transitions ─────────────────────────────────────────────────────────


def submit(promotion_id: str, ctx: RequestContext) -> Promotion:
    """draft → submitted, only when template requirements are met.

    Raises:
        NotFoundError, ForbiddenError, InvalidStatusTransitionError,
        ValidationFailedError, ConflictError
    """
    promotion = _load(promotion_id)
    if promotion.created_by != ctx.user_id:
        raise ForbiddenError("Only the promotion owner can submit it")
    if promotion.status != "draft":
        raise InvalidStatusTransitionError("promotion", "submit", promotion.status)

    evaluation = _evaluate(promotion)
    if not evaluation.is_valid:
        raise ValidationFailedError(evaluation.missing)

    _claim(promotion_id, "draft", {"status": "submitted", "submitted_at": _utcnow()})
    write_audit(
        event_type="promotion.submitted",
        actor_id=ctx.user_id,
        payload={"promotion_id": promotion_id, "badge_count": promotion.badge_count},
    )
    db.session.commit()

    logger.info("Promotion submitted", extra={"promotion_id": promotion_id, "user_id": ctx.user_id})
    NotificationService.notify_promotion_submitted(promotion)
    return promotion


def approve(promotion_id: str, ctx: RequestContext) -> Promotion:
    """submitted → approved; consume reservations and mark badges used_in_promotion.

    Raises:
        NotFoundError, InvalidStatusTransitionError, ConflictError
    """
    promotion = _load(promotion_id)
    if promotion.status != "submitted":
        raise InvalidStatusTransitionError("promotion", "approve", promotion.status)

    now = _utcnow()
    _claim(promotion_id, "submitted", {
        "status": "approved",
        "approved_at": now,
        "approved_by": ctx.user_id,
        "executed": True,
    })

    badge_application_ids = [
        pb.badge_application_id
        for pb in PromotionBadge.query.filter_by(promotion_id=promotion_id, consumed=False).all()
    ]
    PromotionBadge.query.filter_by(promotion_id=promotion_id, consumed=False).update(
        {"consumed": True}, synchronize_session=False,
    )
    if badge_application_ids:
        BadgeApplication.query.filter(BadgeApplication.id.in_(badge_application_ids)).update(
            {"status": "used_in_promotion", "updated_at": now}, synchronize_session=False,
        )
    write_audit(
        event_type="promotion.approved",
        actor_id=ctx.user_id,
        payload={"promotion_id": promotion_id, "badge_application_ids": badge_application_ids},
    )
    db.session.commit()

    logger.info(
        "Promotion approved; %d badge(s) consumed", len(badge_application_ids),
        extra={"promotion_id": promotion_id, "user_id": ctx.user_id},
    )
    NotificationService.notify_promotion_approved(promotion)
    return promotion


def reject(promotion_id: str, reject_reason: str, ctx: RequestContext) -> Promotion:
    """submitted → rejected; release every reservation so badges become reservable again.

    *reject_reason* is expected to be trimmed and length-checked by the caller.

    Raises:
        NotFoundError, InvalidStatusTransitionError, ConflictError
    """
    promotion = _load(promotion_id)
    if promotion.status != "submitted":
        raise InvalidStatusTransitionError("promotion", "reject", promotion.status)

    _claim(promotion_id, "submitted", {
        "status": "rejected",
        "rejected_at": _utcnow(),
        "rejected_by": ctx.user_id,
        "reject_reason": reject_reason,
    })
    released = PromotionBadge.query.filter_by(promotion_id=promotion_id).delete(synchronize_session=False)
    write_audit(
        event_type="promotion.rejected",
        actor_id=ctx.user_id,
        payload={"promotion_id": promotion_id, "released_count": released, "reject_reason": reject_reason},
    )
    db.session.commit()

    logger.info(
        "Promotion rejected; %d reservation(s) released", released,
        extra={"promotion_id": promotion_id, "user_id": ctx.user_id},
    )
    NotificationService.notify_promotion_rejected(promotion)
    return promotion
