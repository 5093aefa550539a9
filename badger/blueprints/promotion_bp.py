"""
Promotion Blueprint — promotion packages, badge reservations and review.

Endpoints:
    GET    /api/promotions                        list (own; admins: all)
    POST   /api/promotions                        { "template_id": uuid } → 201 draft
    GET    /api/promotions/<id>                   detail with template and badges
    DELETE /api/promotions/<id>                   draft only, owner only

    POST   /api/promotions/<id>/badges            { "badge_application_ids": [uuid, ...] }
    DELETE /api/promotions/<id>/badges            { "badge_application_ids": [uuid, ...] }
    GET    /api/promotions/<id>/validation        requirement breakdown

    POST   /api/promotions/<id>/submit            owner:  draft → submitted
    POST   /api/promotions/<id>/approve           admin:  submitted → approved
    POST   /api/promotions/<id>/reject            admin:  submitted → rejected
           Body: { "reject_reason": "..." }       (1–2000 chars after trim)

Layer contract:
    - Blueprint: authenticate, parse + validate input shape, call service,
                 return JSON.  Error bodies come from the app error handlers.
    - NO db.session calls here — all writes owned by promotion_service.
    - Ownership and status rules are enforced in the service.
"""

import logging

from flask import Blueprint, g, jsonify, request

from badger.blueprints import choice_arg, json_body, paginate_query
from badger.core.exceptions import ValidationError
from badger.middleware.permission_required import admin_required, login_required
from badger.models.promotion import PROMOTION_STATUSES
from badger.models.promotion_template import PROMOTION_PATHS
from badger.services import promotion_service
from badger.utils.helpers import parse_uuid_list, require_uuid

logger = logging.getLogger(__name__)

promotion_bp = Blueprint("promotion", __name__, url_prefix="/api")

MAX_REJECT_REASON = 2000


# ── CRUD ───────────────────────────────────────────────────────────────────────


@promotion_bp.route("/promotions", methods=["GET"])
@login_required
def list_promotions():
    created_by = request.args.get("created_by") or None
    if created_by:
        require_uuid(created_by, "created_by")
    template_id = request.args.get("template_id") or None
    if template_id:
        require_uuid(template_id, "template_id")

    query = promotion_service.promotions_query(
        g.request_context,
        status=choice_arg("status", PROMOTION_STATUSES),
        path=choice_arg("path", PROMOTION_PATHS),
        template_id=template_id,
        created_by=created_by,
        sort=choice_arg("sort", promotion_service.SORTABLE_FIELDS, "created_at"),
        order=choice_arg("order", ("asc", "desc"), "desc"),
    )
    return jsonify(paginate_query(query)), 200


@promotion_bp.route("/promotions", methods=["POST"])
@login_required
def create_promotion():
    data = json_body()
    template_id = data.get("template_id")
    if not template_id:
        raise ValidationError("template_id is required", details={"template_id": "required"})
    require_uuid(template_id, "template_id")

    promotion = promotion_service.create_promotion(template_id, g.request_context)
    return jsonify(promotion.to_dict()), 201


@promotion_bp.route("/promotions/<promotion_id>", methods=["GET"])
@login_required
def get_promotion(promotion_id):
    require_uuid(promotion_id, "promotion_id")
    promotion = promotion_service.get_promotion(promotion_id, g.request_context)
    return jsonify(promotion.to_dict(include_details=True)), 200


@promotion_bp.route("/promotions/<promotion_id>", methods=["DELETE"])
@login_required
def delete_promotion(promotion_id):
    require_uuid(promotion_id, "promotion_id")
    promotion_service.delete_promotion(promotion_id, g.request_context)
    return jsonify({"message": "Promotion deleted successfully", "id": promotion_id}), 200


# ── Reservations ───────────────────────────────────────────────────────────────


@promotion_bp.route("/promotions/<promotion_id>/badges", methods=["POST"])
@login_required
def add_badges(promotion_id):
    require_uuid(promotion_id, "promotion_id")
    ids = parse_uuid_list(json_body())
    result = promotion_service.add_badges(promotion_id, ids, g.request_context)
    return jsonify(result), 200


@promotion_bp.route("/promotions/<promotion_id>/badges", methods=["DELETE"])
@login_required
def remove_badges(promotion_id):
    require_uuid(promotion_id, "promotion_id")
    ids = parse_uuid_list(json_body())
    result = promotion_service.remove_badges(promotion_id, ids, g.request_context)
    return jsonify(result), 200


@promotion_bp.route("/promotions/<promotion_id>/validation", methods=["GET"])
@login_required
def validate_promotion(promotion_id):
    require_uuid(promotion_id, "promotion_id")
    return jsonify(promotion_service.validate(promotion_id, g.request_context)), 200


# ── Status transitions ─────────────────────────────────────────────────────────


@promotion_bp.route("/promotions/<promotion_id>/submit", methods=["POST"])
@login_required
def submit_promotion(promotion_id):
    require_uuid(promotion_id, "promotion_id")
    promotion = promotion_service.submit(promotion_id, g.request_context)
    return jsonify(promotion.to_dict()), 200


@promotion_bp.route("/promotions/<promotion_id>/approve", methods=["POST"])
@admin_required
def approve_promotion(promotion_id):
    require_uuid(promotion_id, "promotion_id")
    promotion = promotion_service.approve(promotion_id, g.request_context)
    return jsonify(promotion.to_dict()), 200


@promotion_bp.route("/promotions/<promotion_id>/reject", methods=["POST"])
@admin_required
def reject_promotion(promotion_id):
    """Reject a submitted promotion.

    The reason is validated here, before the data store is touched:
    it must be a string that is non-empty after trimming and at most
    2000 characters.
    """
    require_uuid(promotion_id, "promotion_id")
    data = request.get_json(silent=True) or {}
    reason = data.get("reject_reason")
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("reject_reason is required", details={"reject_reason": "required"})
    reason = reason.strip()
    if len(reason) > MAX_REJECT_REASON:
        raise ValidationError(
            f"reject_reason must be at most {MAX_REJECT_REASON} characters",
            details={"reject_reason": f"max {MAX_REJECT_REASON}"},
        )

    promotion = promotion_service.reject(promotion_id, reason, g.request_context)
    return jsonify(promotion.to_dict()), 200
