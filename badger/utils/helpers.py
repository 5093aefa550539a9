"""
10xBadger
Shared helper functions for blueprints and services.
"""

import uuid
from datetime import date, datetime

from badger.core.exceptions import ValidationError


def is_uuid(value) -> bool:
    """True when *value* is a canonical UUID string."""
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def parse_date(value, field: str = "date") -> date | None:
    """Parse an ISO date string (YYYY-MM-DD), returning None for empty input."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", details={field: value})


def parse_uuid_list(data: dict, field: str = "badge_application_ids", max_items: int = 100) -> list[str]:
    """Read a 1..max_items list of UUIDs from a JSON body, de-duplicated in order.

    Raises:
        ValidationError: missing, empty, oversized or non-UUID entries.
    """
    raw = data.get(field)
    if not isinstance(raw, list) or not raw:
        raise ValidationError(f"{field} must be a non-empty array", details={field: "required"})
    if len(raw) > max_items:
        raise ValidationError(
            f"{field} may contain at most {max_items} items",
            details={field: f"max {max_items}"},
        )
    bad = [v for v in raw if not is_uuid(v)]
    if bad:
        raise ValidationError(f"{field} must contain UUIDs", details={field: bad[:5]})
    return list(dict.fromkeys(raw))


def require_uuid(value, name: str = "id") -> str:
    if not is_uuid(value):
        raise ValidationError(f"Invalid {name} format", details={name: value})
    return value


def read_limit_offset(args, default_limit: int = 20, max_limit: int = 100) -> tuple[int, int]:
    """Parse ``limit`` (1..max_limit) and ``offset`` (>= 0) query params strictly."""
    try:
        limit = int(args.get("limit", default_limit))
        offset = int(args.get("offset", 0))
    except (TypeError, ValueError):
        raise ValidationError("limit and offset must be integers")
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}", details={"limit": limit})
    if offset < 0:
        raise ValidationError("offset must be >= 0", details={"offset": offset})
    return limit, offset
