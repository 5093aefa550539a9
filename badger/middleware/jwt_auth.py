"""
JWT Auth Middleware — parses the bearer token, sets g.request_context.

Every ``/api/`` request except the health probes is expected to carry
``Authorization: Bearer <token>``.  This hook never blocks on its own;
it resolves identity and records why resolution failed, and the
``login_required`` / ``admin_required`` decorators turn that into a 401.

    g.request_context  →  RequestContext(user_id, is_admin) or None
    g.auth_failure     →  reason string when a token was present but rejected
"""

import logging

import jwt as pyjwt
from flask import g, request

from badger.core.context import RequestContext
from badger.models import db
from badger.models.user import User
from badger.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.request_context = None
        g.auth_failure = None

        path = request.path
        if not path.startswith("/api/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:].strip()

        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            g.auth_failure = "token_expired"
            return
        except pyjwt.InvalidTokenError as exc:
            g.auth_failure = "token_invalid"
            logger.debug("Rejected bearer token: %s", exc)
            return

        user = db.session.get(User, str(payload["sub"]))
        if user is None:
            g.auth_failure = "unknown_user"
            return

        g.request_context = RequestContext(user_id=user.id, is_admin=bool(user.is_admin))
