"""Standardised API error responses.

Usage
-----
    from badger.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Promotion not found")
    return api_error(E.VALIDATION, "reject_reason is required", details={"field": "reject_reason"})
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (the ``error`` field of the body)."""

    # HTTP 400
    VALIDATION = "validation_error"
    INVALID_BADGE_APPLICATION = "invalid_badge_application"

    # HTTP 401 / 403
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"

    # HTTP 404 / 405 / 413 / 415 / 429
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    RATE_LIMITED = "rate_limited"

    # HTTP 409
    CONFLICT = "conflict"
    RESERVATION_CONFLICT = "reservation_conflict"
    INVALID_STATUS = "invalid_status"
    VALIDATION_FAILED = "validation_failed"

    # HTTP 500
    INTERNAL = "internal_error"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION: 400,
    E.INVALID_BADGE_APPLICATION: 400,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.METHOD_NOT_ALLOWED: 405,
    E.PAYLOAD_TOO_LARGE: 413,
    E.UNSUPPORTED_MEDIA_TYPE: 415,
    E.RATE_LIMITED: 429,
    E.CONFLICT: 409,
    E.RESERVATION_CONFLICT: 409,
    E.INVALID_STATUS: 409,
    E.VALIDATION_FAILED: 409,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
    **extra,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Field-level payload, emitted under ``details``.
    **extra
        Additional top-level fields (``current_status``, ``missing`` ...).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": code,
        "message": message,
    }
    if details:
        body["details"] = details
    body.update(extra)

    return jsonify(body), http_status


def error_from_exception(exc):
    """Render a ``BadgerError`` with its code, status and extra fields."""
    return api_error(exc.error_code, exc.message, status=exc.status_code, **exc.extra())
