"""
Badge Application Service.

Lifecycle:
    draft ──submit (owner)──▶ submitted ──accept (admin)──▶ accepted
                                        └─reject (admin)──▶ rejected

``accepted → used_in_promotion`` is owned by ``promotion_service.approve``.
Category, level and catalog version are snapshotted from the catalog badge
at creation and refreshed on submit.
"""

from __future__ import annotations

import logging

from badger.core.context import RequestContext
from badger.core.exceptions import (
    ForbiddenError,
    InvalidStatusError,
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
)
from badger.models import _utcnow, db
from badger.models.audit import write_audit
from badger.models.badge_application import BadgeApplication
from badger.models.catalog import CatalogBadge

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "submitted_at")
EDITABLE_FIELDS = ("catalog_badge_id", "date_of_application", "date_of_fulfillment", "reason")


# ── Private helpers ────────────────────────────────────────────────────────────


def _active_catalog_badge(catalog_badge_id: str) -> CatalogBadge:
    badge = db.session.get(CatalogBadge, catalog_badge_id)
    if badge is None:
        raise NotFoundError("Catalog badge", catalog_badge_id)
    if badge.status != "active":
        raise InvalidStatusError(
            f"Catalog badge {catalog_badge_id} is not active",
            current_status=badge.status,
        )
    return badge


def _snapshot(application: BadgeApplication, badge: CatalogBadge) -> None:
    application.catalog_badge_id = badge.id
    application.catalog_badge_version = badge.version
    application.category = badge.category
    application.level = badge.level


def _check_dates(application: BadgeApplication) -> None:
    if (
        application.date_of_fulfillment is not None
        and application.date_of_application is not None
        and application.date_of_fulfillment < application.date_of_application
    ):
        raise ValidationError(
            "date_of_fulfillment must not be before date_of_application",
            details={"date_of_fulfillment": application.date_of_fulfillment.isoformat()},
        )


def _load(application_id: str) -> BadgeApplication:
    application = db.session.get(BadgeApplication, application_id)
    if application is None:
        raise NotFoundError("Badge application", application_id)
    return application


def _load_owned_draft(application_id: str, ctx: RequestContext, action: str) -> BadgeApplication:
    application = _load(application_id)
    if application.applicant_id != ctx.user_id:
        raise ForbiddenError(f"You do not have permission to {action} this badge application")
    if application.status != "draft":
        raise ForbiddenError(
            f"Only draft badge applications can be {action}d (current: {application.status})"
        )
    return application


# ── Public API ─────────────────────────────────────────────────────────────────


def create_application(data: dict, ctx: RequestContext) -> BadgeApplication:
    """Create a draft application for an active catalog badge.

    *data* carries already-parsed values: catalog_badge_id, date_of_application,
    date_of_fulfillment (optional), reason (optional).
    """
    badge = _active_catalog_badge(data["catalog_badge_id"])
    application = BadgeApplication(
        applicant_id=ctx.user_id,
        status="draft",
        date_of_application=data["date_of_application"],
        date_of_fulfillment=data.get("date_of_fulfillment"),
        reason=data.get("reason"),
    )
    _snapshot(application, badge)
    _check_dates(application)

    db.session.add(application)
    db.session.flush()
    write_audit(
        event_type="badge_application.created",
        actor_id=ctx.user_id,
        payload={"badge_application_id": application.id, "catalog_badge_id": badge.id},
    )
    db.session.commit()
    logger.info("Badge application created",
                extra={"badge_application_id": application.id, "user_id": ctx.user_id})
    return application


def applications_query(
    ctx: RequestContext,
    *,
    status: str | None = None,
    applicant_id: str | None = None,
    catalog_badge_id: str | None = None,
    sort: str = "created_at",
    order: str = "desc",
):
    q = BadgeApplication.query
    if not ctx.is_admin:
        q = q.filter(BadgeApplication.applicant_id == ctx.user_id)
    elif applicant_id:
        q = q.filter(BadgeApplication.applicant_id == applicant_id)
    if status:
        q = q.filter(BadgeApplication.status == status)
    if catalog_badge_id:
        q = q.filter(BadgeApplication.catalog_badge_id == catalog_badge_id)
    column = getattr(BadgeApplication, sort if sort in SORTABLE_FIELDS else "created_at")
    return q.order_by(column.asc() if order == "asc" else column.desc(), BadgeApplication.id)


def get_application(application_id: str, ctx: RequestContext) -> BadgeApplication:
    application = _load(application_id)
    if application.applicant_id != ctx.user_id and not ctx.is_admin:
        raise NotFoundError("Badge application", application_id)
    return application


def update_application(application_id: str, changes: dict, ctx: RequestContext) -> BadgeApplication:
    """Edit a draft owned by the requester. Only ``EDITABLE_FIELDS`` are applied."""
    application = _load_owned_draft(application_id, ctx, "update")

    if "catalog_badge_id" in changes and changes["catalog_badge_id"] != application.catalog_badge_id:
        _snapshot(application, _active_catalog_badge(changes["catalog_badge_id"]))
    for field in ("date_of_application", "date_of_fulfillment", "reason"):
        if field in changes:
            setattr(application, field, changes[field])
    if application.date_of_application is None:
        raise ValidationError("date_of_application is required", details={"date_of_application": "required"})
    _check_dates(application)

    db.session.commit()
    return application


def delete_application(application_id: str, ctx: RequestContext) -> None:
    application = _load_owned_draft(application_id, ctx, "delete")
    db.session.delete(application)
    db.session.commit()
    logger.info("Badge application deleted",
                extra={"badge_application_id": application_id, "user_id": ctx.user_id})


def submit_application(application_id: str, ctx: RequestContext) -> BadgeApplication:
    """draft → submitted. Re-checks the catalog badge and refreshes the snapshot."""
    application = _load(application_id)
    if application.applicant_id != ctx.user_id:
        raise ForbiddenError("Only the applicant can submit this badge application")
    if application.status != "draft":
        raise InvalidStatusTransitionError("badge application", "submit", application.status)

    _snapshot(application, _active_catalog_badge(application.catalog_badge_id))
    _check_dates(application)
    application.status = "submitted"
    application.submitted_at = _utcnow()
    write_audit(
        event_type="badge_application.submitted",
        actor_id=ctx.user_id,
        payload={"badge_application_id": application.id, "catalog_badge_version": application.catalog_badge_version},
    )
    db.session.commit()
    logger.info("Badge application submitted",
                extra={"badge_application_id": application.id, "user_id": ctx.user_id})
    return application


def _review(application_id: str, decision: str, decision_note: str | None, ctx: RequestContext):
    application = _load(application_id)
    if application.status != "submitted":
        action = "accept" if decision == "accepted" else "reject"
        raise InvalidStatusTransitionError("badge application", action, application.status)

    application.status = decision
    application.reviewed_by = ctx.user_id
    application.reviewed_at = _utcnow()
    application.decision_note = decision_note
    write_audit(
        event_type=f"badge_application.{decision}",
        actor_id=ctx.user_id,
        payload={"badge_application_id": application.id, "decision_note": decision_note},
    )
    db.session.commit()
    logger.info("Badge application %s", decision,
                extra={"badge_application_id": application.id, "user_id": ctx.user_id})
    return application


def accept_application(application_id: str, decision_note: str | None, ctx: RequestContext) -> BadgeApplication:
    """submitted → accepted (admin)."""
    return _review(application_id, "accepted", decision_note, ctx)


def reject_application(application_id: str, decision_note: str, ctx: RequestContext) -> BadgeApplication:
    """submitted → rejected (admin). *decision_note* is validated by the caller."""
    return _review(application_id, "rejected", decision_note, ctx)
