"""
Promotion Template Blueprint.

Endpoints:
    GET    /api/promotion-templates                 list (filters: path, from_level, to_level, is_active)
    POST   /api/promotion-templates                 admin: create
    GET    /api/promotion-templates/<id>            detail
    PUT    /api/promotion-templates/<id>            admin: update name / rules
    POST   /api/promotion-templates/<id>/deactivate admin: soft-deactivate

Body for create:
    { "name": str, "path": "technical|financial|management",
      "from_level": str, "to_level": str,
      "rules": [{"category": "technical|organizational|softskilled|any",
                 "level": "gold|silver|bronze", "count": int >= 1}, ...] }
"""

import logging

from flask import Blueprint, g, jsonify, request

from badger.blueprints import choice_arg, json_body, paginate_query
from badger.core.exceptions import ValidationError
from badger.middleware.permission_required import admin_required, login_required
from badger.models.promotion_template import PROMOTION_PATHS
from badger.services import template_service
from badger.utils.helpers import require_uuid

logger = logging.getLogger(__name__)

template_bp = Blueprint("template", __name__, url_prefix="/api")

_TRUE = {"true", "1"}
_FALSE = {"false", "0"}


def _text(data: dict, field: str, max_len: int = 200) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={field: "required"})
    value = value.strip()
    if len(value) > max_len:
        raise ValidationError(f"{field} must be at most {max_len} characters", details={field: f"max {max_len}"})
    return value


def _is_active_arg():
    raw = (request.args.get("is_active") or "true").lower()
    if raw == "all":
        return None
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValidationError("is_active must be true, false or all", details={"is_active": raw})


@template_bp.route("/promotion-templates", methods=["GET"])
@login_required
def list_templates():
    query = template_service.templates_query(
        path=choice_arg("path", PROMOTION_PATHS),
        from_level=request.args.get("from_level") or None,
        to_level=request.args.get("to_level") or None,
        is_active=_is_active_arg(),
        sort=choice_arg("sort", template_service.SORTABLE_FIELDS, "name"),
        order=choice_arg("order", ("asc", "desc"), "asc"),
    )
    return jsonify(paginate_query(query)), 200


@template_bp.route("/promotion-templates", methods=["POST"])
@admin_required
def create_template():
    data = json_body()
    path = data.get("path")
    if path not in PROMOTION_PATHS:
        raise ValidationError(f"path must be one of: {', '.join(PROMOTION_PATHS)}", details={"path": path})
    payload = {
        "name": _text(data, "name"),
        "path": path,
        "from_level": _text(data, "from_level", 20),
        "to_level": _text(data, "to_level", 20),
        "rules": data.get("rules"),
    }
    template = template_service.create_template(payload, g.request_context)
    return jsonify(template.to_dict()), 201


@template_bp.route("/promotion-templates/<template_id>", methods=["GET"])
@login_required
def get_template(template_id):
    require_uuid(template_id, "template_id")
    return jsonify(template_service.get_template(template_id).to_dict()), 200


@template_bp.route("/promotion-templates/<template_id>", methods=["PUT"])
@admin_required
def update_template(template_id):
    require_uuid(template_id, "template_id")
    data = json_body()
    changes = {}
    if "name" in data:
        changes["name"] = _text(data, "name")
    if "rules" in data:
        changes["rules"] = data["rules"]
    if not changes:
        raise ValidationError("Nothing to update; provide name and/or rules")
    template = template_service.update_template(template_id, changes, g.request_context)
    return jsonify(template.to_dict()), 200


@template_bp.route("/promotion-templates/<template_id>/deactivate", methods=["POST"])
@admin_required
def deactivate_template(template_id):
    require_uuid(template_id, "template_id")
    template = template_service.deactivate_template(template_id, g.request_context)
    return jsonify(template.to_dict()), 200
