"""
10xBadger
Blueprint helpers shared by the API modules.
"""

from flask import request

from badger.core.exceptions import ValidationError
from badger.utils.helpers import read_limit_offset


def paginate_query(query, default_limit=20, max_limit=100):
    """Apply limit/offset pagination to a SQLAlchemy query.

    Query params:
        limit  — max items (default 20, 1..max_limit)
        offset — starting position (default 0)

    Returns:
        dict with ``data`` (serialised items) and ``pagination`` metadata.
    """
    limit, offset = read_limit_offset(request.args, default_limit, max_limit)
    total = query.count()
    items = query.limit(limit).offset(offset).all()
    return {
        "data": [item.to_dict() for item in items],
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(items) < total,
        },
    }


def json_body() -> dict:
    """Return the JSON object body or raise a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def choice_arg(name: str, choices, default=None):
    """Read an optional query param restricted to *choices*."""
    value = request.args.get(name)
    if value is None or value == "":
        return default
    if value not in choices:
        raise ValidationError(
            f"{name} must be one of: {', '.join(choices)}",
            details={name: value},
        )
    return value
