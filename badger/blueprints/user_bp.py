"""
Current user endpoint.

    GET /api/me  → the authenticated user's profile and admin flag
"""

from flask import Blueprint, g, jsonify

from badger.core.exceptions import NotFoundError
from badger.middleware.permission_required import login_required
from badger.models import db
from badger.models.user import User

user_bp = Blueprint("user", __name__, url_prefix="/api")


@user_bp.route("/me", methods=["GET"])
@login_required
def me():
    user = db.session.get(User, g.request_context.user_id)
    if user is None:
        raise NotFoundError("User", g.request_context.user_id)
    return jsonify(user.to_dict()), 200
