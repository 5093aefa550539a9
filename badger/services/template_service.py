"""
Promotion Template Service.

Admin-managed rule sets, one per (path, from_level, to_level).  Rules are
validated through ``badger.services.rules`` and stored in their canonical
JSON form.  Deactivation is soft; existing promotions keep their template.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from badger.core.context import RequestContext
from badger.core.exceptions import ConflictError, InvalidStatusError, NotFoundError
from badger.models import db
from badger.models.audit import write_audit
from badger.models.promotion_template import PromotionTemplate
from badger.services.rules import parse_rules, serialize_rules

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("name", "created_at")


def _load(template_id: str) -> PromotionTemplate:
    template = db.session.get(PromotionTemplate, template_id)
    if template is None:
        raise NotFoundError("Promotion template", template_id)
    return template


def _duplicate_message(path: str, from_level: str, to_level: str) -> str:
    return f"A template for {path} {from_level} -> {to_level} already exists"


def templates_query(
    *,
    path: str | None = None,
    from_level: str | None = None,
    to_level: str | None = None,
    is_active: bool | None = True,
    sort: str = "name",
    order: str = "asc",
):
    q = PromotionTemplate.query
    if path:
        q = q.filter(PromotionTemplate.path == path)
    if from_level:
        q = q.filter(PromotionTemplate.from_level == from_level)
    if to_level:
        q = q.filter(PromotionTemplate.to_level == to_level)
    if is_active is not None:
        q = q.filter(PromotionTemplate.is_active.is_(is_active))
    column = getattr(PromotionTemplate, sort if sort in SORTABLE_FIELDS else "name")
    return q.order_by(column.asc() if order == "asc" else column.desc(), PromotionTemplate.id)


def get_template(template_id: str) -> PromotionTemplate:
    return _load(template_id)


def create_template(data: dict, ctx: RequestContext) -> PromotionTemplate:
    """Create a template. Raises ConflictError for a duplicate transition."""
    rules = parse_rules(data.get("rules"))
    path, from_level, to_level = data["path"], data["from_level"], data["to_level"]

    existing = PromotionTemplate.query.filter_by(path=path, from_level=from_level, to_level=to_level).first()
    if existing is not None:
        raise ConflictError(_duplicate_message(path, from_level, to_level), resource="PromotionTemplate")

    template = PromotionTemplate(
        name=data["name"],
        path=path,
        from_level=from_level,
        to_level=to_level,
        rules=serialize_rules(rules),
        is_active=True,
        created_by=ctx.user_id,
    )
    db.session.add(template)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(_duplicate_message(path, from_level, to_level), resource="PromotionTemplate")

    write_audit(
        event_type="promotion_template.created",
        actor_id=ctx.user_id,
        payload={"template_id": template.id, "path": path, "from_level": from_level, "to_level": to_level},
    )
    db.session.commit()
    logger.info("Promotion template created", extra={"template_id": template.id, "user_id": ctx.user_id})
    return template


def update_template(template_id: str, changes: dict, ctx: RequestContext) -> PromotionTemplate:
    """Update name and/or rules."""
    template = _load(template_id)
    before = {"name": template.name, "rules": list(template.rules or [])}
    if "name" in changes:
        template.name = changes["name"]
    if "rules" in changes:
        template.rules = serialize_rules(parse_rules(changes["rules"]))
    write_audit(
        event_type="promotion_template.updated",
        actor_id=ctx.user_id,
        payload={"template_id": template.id, "before": before,
                 "after": {"name": template.name, "rules": template.rules}},
    )
    db.session.commit()
    return template


def deactivate_template(template_id: str, ctx: RequestContext) -> PromotionTemplate:
    template = _load(template_id)
    if not template.is_active:
        raise InvalidStatusError("Promotion template is already inactive", current_status="inactive")
    template.is_active = False
    write_audit(
        event_type="promotion_template.deactivated",
        actor_id=ctx.user_id,
        payload={"template_id": template.id},
    )
    db.session.commit()
    logger.info("Promotion template deactivated", extra={"template_id": template.id, "user_id": ctx.user_id})
    return template
