"""
Notification Blueprint.

Endpoints:
    GET   /api/notifications                 own notifications (+ admin broadcasts for admins)
          Query params: unread_only=true, limit, offset
    POST  /api/notifications/<id>/read       mark one as read
"""

from flask import Blueprint, g, jsonify, request

from badger.blueprints import paginate_query
from badger.core.exceptions import NotFoundError
from badger.middleware.permission_required import login_required
from badger.services.notification import NotificationService
from badger.utils.helpers import require_uuid

notification_bp = Blueprint("notification", __name__, url_prefix="/api")


@notification_bp.route("/notifications", methods=["GET"])
@login_required
def list_notifications():
    unread_only = (request.args.get("unread_only") or "").lower() in ("true", "1")
    query = NotificationService.query_for_user(g.request_context, unread_only=unread_only)
    return jsonify(paginate_query(query)), 200


@notification_bp.route("/notifications/<notification_id>/read", methods=["POST"])
@login_required
def mark_read(notification_id):
    require_uuid(notification_id, "notification_id")
    notif = NotificationService.mark_read(notification_id, g.request_context)
    if notif is None:
        raise NotFoundError("Notification", notification_id)
    return jsonify(notif.to_dict()), 200
