"""
Catalog Service — badge definitions employees can apply for.
"""

from __future__ import annotations

import logging

from badger.core.context import RequestContext
from badger.core.exceptions import InvalidStatusError, NotFoundError
from badger.models import _utcnow, db
from badger.models.audit import write_audit
from badger.models.catalog import CatalogBadge

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "title")


def catalog_query(
    *,
    category: str | None = None,
    level: str | None = None,
    status: str | None = "active",
    q: str | None = None,
    sort: str = "created_at",
    order: str = "desc",
):
    query = CatalogBadge.query
    if category:
        query = query.filter(CatalogBadge.category == category)
    if level:
        query = query.filter(CatalogBadge.level == level)
    if status:
        query = query.filter(CatalogBadge.status == status)
    if q:
        query = query.filter(CatalogBadge.title.ilike(f"%{q}%"))
    column = getattr(CatalogBadge, sort if sort in SORTABLE_FIELDS else "created_at")
    return query.order_by(column.asc() if order == "asc" else column.desc(), CatalogBadge.id)


def get_badge(badge_id: str) -> CatalogBadge:
    badge = db.session.get(CatalogBadge, badge_id)
    if badge is None:
        raise NotFoundError("Catalog badge", badge_id)
    return badge


def create_badge(data: dict, ctx: RequestContext | None) -> CatalogBadge:
    """Create an active catalog badge. *ctx* is None for CLI seeding."""
    actor_id = ctx.user_id if ctx else None
    badge = CatalogBadge(
        title=data["title"],
        description=data.get("description"),
        category=data["category"],
        level=data["level"],
        metadata_json=data.get("metadata") or {},
        status="active",
        version=1,
        created_by=actor_id,
    )
    db.session.add(badge)
    db.session.flush()
    write_audit(
        event_type="catalog_badge.created",
        actor_id=actor_id,
        payload={"catalog_badge_id": badge.id, "category": badge.category, "level": badge.level},
    )
    db.session.commit()
    return badge


def deactivate_badge(badge_id: str, ctx: RequestContext) -> CatalogBadge:
    badge = get_badge(badge_id)
    if badge.status != "active":
        raise InvalidStatusError("Catalog badge is already inactive", current_status=badge.status)
    badge.status = "inactive"
    badge.deactivated_at = _utcnow()
    write_audit(
        event_type="catalog_badge.deactivated",
        actor_id=ctx.user_id,
        payload={"catalog_badge_id": badge.id},
    )
    db.session.commit()
    logger.info("Catalog badge deactivated %s", badge.id, extra={"user_id": ctx.user_id})
    return badge


def seed_catalog(entries) -> int:
    """Insert catalog badges whose (title, category, level) is not yet present.

    Returns the number of badges created.
    """
    created = 0
    for entry in entries:
        exists = CatalogBadge.query.filter_by(
            title=entry["title"], category=entry["category"], level=entry["level"],
        ).first()
        if exists is not None:
            continue
        create_badge(entry, None)
        created += 1
    return created
