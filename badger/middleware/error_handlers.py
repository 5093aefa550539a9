"""
Application-wide JSON error handlers.

    BadgerError     → its own code / status / extra fields
    HTTPException   → matching code (404, 405, 413, 415, 429 ...)
    anything else   → 500 internal_error, traceback logged, row in error_logs

Usage:
    from badger.middleware.error_handlers import init_error_handlers
    init_error_handlers(app)
"""

import logging

from flask import g, request
from werkzeug.exceptions import HTTPException

from badger.core.exceptions import BadgerError
from badger.services.error_logger import log_error
from badger.utils.errors import E, api_error, error_from_exception

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: E.VALIDATION,
    401: E.UNAUTHORIZED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    405: E.METHOD_NOT_ALLOWED,
    413: E.PAYLOAD_TOO_LARGE,
    415: E.UNSUPPORTED_MEDIA_TYPE,
    429: E.RATE_LIMITED,
}


def init_error_handlers(app):
    """Register JSON error handlers on *app*."""

    @app.errorhandler(BadgerError)
    def _handle_badger_error(error: BadgerError):
        logger.info(
            "%s %s -> %s: %s", request.method, request.path, error.error_code, error.message,
            extra={"error_code": error.error_code, "path": request.path},
        )
        return error_from_exception(error)

    @app.errorhandler(HTTPException)
    def _handle_http_error(error: HTTPException):
        code = _HTTP_CODES.get(error.code, E.INTERNAL if (error.code or 500) >= 500 else E.VALIDATION)
        return api_error(code, error.description or error.name, status=error.code)

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        logger.exception("Unexpected error endpoint=%s", request.endpoint)
        ctx = getattr(g, "request_context", None)
        log_error(
            f"{request.method} {request.path}",
            E.INTERNAL,
            f"{type(error).__name__}: {error}",
            requester_id=ctx.user_id if ctx else None,
        )
        return api_error(E.INTERNAL, "An unexpected error occurred")
