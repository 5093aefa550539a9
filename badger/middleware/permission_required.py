"""
Route guards built on ``g.request_context``.

Usage:
    @bp.route("/promotions/<promotion_id>/approve", methods=["POST"])
    @admin_required
    def approve(promotion_id):
        ...

``login_required`` answers 401 when no identity could be resolved;
``admin_required`` additionally answers 403 for non-admins.  Ownership
checks are business rules and live in the services.
"""

import functools
import logging

from flask import g, request

from badger.services import audit_service
from badger.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def _unauthorized():
    reason = getattr(g, "auth_failure", None) or "missing_token"
    if reason != "missing_token":
        audit_service.record_event(
            "auth.failure",
            payload={"reason": reason, "path": request.path, "method": request.method},
        )
    logger.info("Unauthorized request to %s (%s)", request.path, reason)
    return api_error(E.UNAUTHORIZED, "Authentication required")


def login_required(f):
    """Decorator: require an authenticated user."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "request_context", None) is None:
            return _unauthorized()
        return f(*args, **kwargs)
    return decorated


def admin_required(f):
    """Decorator: require an authenticated administrator."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        ctx = getattr(g, "request_context", None)
        if ctx is None:
            return _unauthorized()
        if not ctx.is_admin:
            logger.warning("User %s denied: admin required on %s", ctx.user_id, f.__name__)
            return api_error(E.FORBIDDEN, "Admin access required")
        return f(*args, **kwargs)
    return decorated
