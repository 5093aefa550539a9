"""
Badge Application Blueprint.

Endpoints:
    GET    /api/badge-applications               list (own; admins: all)
    POST   /api/badge-applications               create draft
    GET    /api/badge-applications/<id>          detail
    PUT    /api/badge-applications/<id>          owner: edit draft
    DELETE /api/badge-applications/<id>          owner: delete draft
    POST   /api/badge-applications/<id>/submit   owner: draft → submitted
    POST   /api/badge-applications/<id>/accept   admin: submitted → accepted   { "decision_note"?: str }
    POST   /api/badge-applications/<id>/reject   admin: submitted → rejected   { "decision_note": str }
"""

import logging

from flask import Blueprint, g, jsonify, request

from badger.blueprints import choice_arg, json_body, paginate_query
from badger.core.exceptions import ValidationError
from badger.middleware.permission_required import admin_required, login_required
from badger.models.badge_application import BADGE_APPLICATION_STATUSES
from badger.services import badge_application_service
from badger.utils.helpers import parse_date, require_uuid

logger = logging.getLogger(__name__)

badge_application_bp = Blueprint("badge_application", __name__, url_prefix="/api")

MAX_NOTE = 2000
MAX_REASON = 2000


def _note(data: dict, required: bool) -> str | None:
    note = data.get("decision_note")
    if note is not None and not isinstance(note, str):
        raise ValidationError("decision_note must be a string", details={"decision_note": "type"})
    note = (note or "").strip()
    if required and not note:
        raise ValidationError("decision_note is required", details={"decision_note": "required"})
    if len(note) > MAX_NOTE:
        raise ValidationError(f"decision_note must be at most {MAX_NOTE} characters",
                              details={"decision_note": f"max {MAX_NOTE}"})
    return note or None


def _reason(data: dict) -> str | None:
    reason = data.get("reason")
    if reason is None:
        return None
    if not isinstance(reason, str) or len(reason) > MAX_REASON:
        raise ValidationError(f"reason must be a string of at most {MAX_REASON} characters",
                              details={"reason": f"max {MAX_REASON}"})
    return reason


@badge_application_bp.route("/badge-applications", methods=["GET"])
@login_required
def list_applications():
    applicant_id = request.args.get("applicant_id") or None
    if applicant_id:
        require_uuid(applicant_id, "applicant_id")
    catalog_badge_id = request.args.get("catalog_badge_id") or None
    if catalog_badge_id:
        require_uuid(catalog_badge_id, "catalog_badge_id")

    query = badge_application_service.applications_query(
        g.request_context,
        status=choice_arg("status", BADGE_APPLICATION_STATUSES),
        applicant_id=applicant_id,
        catalog_badge_id=catalog_badge_id,
        sort=choice_arg("sort", badge_application_service.SORTABLE_FIELDS, "created_at"),
        order=choice_arg("order", ("asc", "desc"), "desc"),
    )
    return jsonify(paginate_query(query)), 200


@badge_application_bp.route("/badge-applications", methods=["POST"])
@login_required
def create_application():
    data = json_body()
    catalog_badge_id = data.get("catalog_badge_id")
    if not catalog_badge_id:
        raise ValidationError("catalog_badge_id is required", details={"catalog_badge_id": "required"})
    require_uuid(catalog_badge_id, "catalog_badge_id")
    date_of_application = parse_date(data.get("date_of_application"), "date_of_application")
    if date_of_application is None:
        raise ValidationError("date_of_application is required", details={"date_of_application": "required"})

    application = badge_application_service.create_application(
        {
            "catalog_badge_id": catalog_badge_id,
            "date_of_application": date_of_application,
            "date_of_fulfillment": parse_date(data.get("date_of_fulfillment"), "date_of_fulfillment"),
            "reason": _reason(data),
        },
        g.request_context,
    )
    return jsonify(application.to_dict(include_catalog_badge=True)), 201


@badge_application_bp.route("/badge-applications/<application_id>", methods=["GET"])
@login_required
def get_application(application_id):
    require_uuid(application_id, "application_id")
    application = badge_application_service.get_application(application_id, g.request_context)
    return jsonify(application.to_dict(include_catalog_badge=True)), 200


@badge_application_bp.route("/badge-applications/<application_id>", methods=["PUT"])
@login_required
def update_application(application_id):
    require_uuid(application_id, "application_id")
    data = json_body()
    changes = {}
    if "catalog_badge_id" in data:
        changes["catalog_badge_id"] = require_uuid(data["catalog_badge_id"], "catalog_badge_id")
    if "date_of_application" in data:
        changes["date_of_application"] = parse_date(data["date_of_application"], "date_of_application")
    if "date_of_fulfillment" in data:
        changes["date_of_fulfillment"] = parse_date(data["date_of_fulfillment"], "date_of_fulfillment")
    if "reason" in data:
        changes["reason"] = _reason(data)

    application = badge_application_service.update_application(application_id, changes, g.request_context)
    return jsonify(application.to_dict(include_catalog_badge=True)), 200


@badge_application_bp.route("/badge-applications/<application_id>", methods=["DELETE"])
@login_required
def delete_application(application_id):
    require_uuid(application_id, "application_id")
    badge_application_service.delete_application(application_id, g.request_context)
    return jsonify({"message": "Badge application deleted successfully", "id": application_id}), 200


@badge_application_bp.route("/badge-applications/<application_id>/submit", methods=["POST"])
@login_required
def submit_application(application_id):
    require_uuid(application_id, "application_id")
    application = badge_application_service.submit_application(application_id, g.request_context)
    return jsonify(application.to_dict()), 200


@badge_application_bp.route("/badge-applications/<application_id>/accept", methods=["POST"])
@admin_required
def accept_application(application_id):
    require_uuid(application_id, "application_id")
    note = _note(request.get_json(silent=True) or {}, required=False)
    application = badge_application_service.accept_application(application_id, note, g.request_context)
    return jsonify(application.to_dict()), 200


@badge_application_bp.route("/badge-applications/<application_id>/reject", methods=["POST"])
@admin_required
def reject_application(application_id):
    require_uuid(application_id, "application_id")
    note = _note(request.get_json(silent=True) or {}, required=True)
    application = badge_application_service.reject_application(application_id, note, g.request_context)
    return jsonify(application.to_dict()), 200
