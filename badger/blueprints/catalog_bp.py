"""
Badge Catalog Blueprint.

Endpoints:
    GET    /api/catalog-badges                  list (filters: category, level, status, q)
    POST   /api/catalog-badges                  admin: create
    GET    /api/catalog-badges/<id>             detail
    POST   /api/catalog-badges/<id>/deactivate  admin: soft-deactivate
"""

from flask import Blueprint, g, jsonify, request

from badger.blueprints import choice_arg, json_body, paginate_query
from badger.core.exceptions import ValidationError
from badger.middleware.permission_required import admin_required, login_required
from badger.models.catalog import BADGE_CATEGORIES, BADGE_LEVELS, CATALOG_STATUSES
from badger.services import catalog_service
from badger.utils.helpers import require_uuid

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.route("/catalog-badges", methods=["GET"])
@login_required
def list_badges():
    status = choice_arg("status", CATALOG_STATUSES + ("all",), "active")
    if status != "active" and not g.request_context.is_admin:
        status = "active"
    q = (request.args.get("q") or "").strip()
    if len(q) > 200:
        raise ValidationError("q must be at most 200 characters", details={"q": "max 200"})

    query = catalog_service.catalog_query(
        category=choice_arg("category", BADGE_CATEGORIES),
        level=choice_arg("level", BADGE_LEVELS),
        status=None if status == "all" else status,
        q=q or None,
        sort=choice_arg("sort", catalog_service.SORTABLE_FIELDS, "created_at"),
        order=choice_arg("order", ("asc", "desc"), "desc"),
    )
    return jsonify(paginate_query(query)), 200


@catalog_bp.route("/catalog-badges", methods=["POST"])
@admin_required
def create_badge():
    data = json_body()
    title = data.get("title")
    if not isinstance(title, str) or not title.strip() or len(title.strip()) > 200:
        raise ValidationError("title is required (max 200 characters)", details={"title": "required"})
    if data.get("category") not in BADGE_CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(BADGE_CATEGORIES)}",
                              details={"category": data.get("category")})
    if data.get("level") not in BADGE_LEVELS:
        raise ValidationError(f"level must be one of: {', '.join(BADGE_LEVELS)}",
                              details={"level": data.get("level")})
    description = data.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError("description must be a string", details={"description": "type"})
    metadata = data.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        raise ValidationError("metadata must be an object", details={"metadata": "type"})

    badge = catalog_service.create_badge(
        {
            "title": title.strip(),
            "description": description,
            "category": data["category"],
            "level": data["level"],
            "metadata": metadata,
        },
        g.request_context,
    )
    return jsonify(badge.to_dict()), 201


@catalog_bp.route("/catalog-badges/<badge_id>", methods=["GET"])
@login_required
def get_badge(badge_id):
    require_uuid(badge_id, "badge_id")
    return jsonify(catalog_service.get_badge(badge_id).to_dict()), 200


@catalog_bp.route("/catalog-badges/<badge_id>/deactivate", methods=["POST"])
@admin_required
def deactivate_badge(badge_id):
    require_uuid(badge_id, "badge_id")
    return jsonify(catalog_service.deactivate_badge(badge_id, g.request_context).to_dict()), 200
