"""
Application-wide exception hierarchy.

Services raise these types; ``badger.middleware.error_handlers`` maps every one of
them to a JSON error body exactly once, so blueprints never build error
responses for business-rule failures themselves.

Each class carries:
    error_code  — machine-readable ``error`` value of the JSON body
    status_code — HTTP status
    extra()     — additional top-level fields for the JSON body

Usage:
    from badger.core.exceptions import NotFoundError, InvalidStatusError

    raise NotFoundError(resource="Promotion", resource_id=promotion_id)
    raise InvalidStatusError("Promotion is not in draft status", current_status="submitted")
"""


class BadgerError(Exception):
    """Base class for all expected, client-visible failures."""

    error_code = "internal_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def extra(self) -> dict:
        return {}


class ValidationError(BadgerError):
    """Raised when input is malformed or fails a field-level rule.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
                 Keys are field names; values are error descriptions.
    """

    error_code = "validation_error"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)

    def extra(self) -> dict:
        return {"details": self.details} if self.details else {}


class ForbiddenError(BadgerError):
    """Raised when the requester may not perform the action.

    Covers "not the owner", "not an admin" and "promotion is not editable".
    """

    error_code = "forbidden"
    status_code = 403


class NotFoundError(BadgerError):
    """Raised when a requested resource does not exist or is not visible.

    Used for BOTH genuinely missing records AND records owned by someone
    else that the requester may not read; a 403 would confirm existence.

    Args:
        resource: Human-readable entity name (e.g. "Promotion").
        resource_id: The id that was looked up.
    """

    error_code = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: str | None = None, message: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        if message is None:
            message = f"{resource} not found"
            if resource_id is not None:
                message = f"{resource} not found: {resource_id}"
        super().__init__(message)


class NotInPromotionError(NotFoundError):
    """A badge application is not reserved by the promotion being edited."""

    def __init__(self, promotion_id: str, badge_application_id: str) -> None:
        self.promotion_id = promotion_id
        self.badge_application_id = badge_application_id
        super().__init__(
            "Badge application",
            badge_application_id,
            message=f"Badge application {badge_application_id} is not assigned to promotion {promotion_id}",
        )

    def extra(self) -> dict:
        return {"details": {"badge_application_id": self.badge_application_id}}


class InvalidBadgeApplicationError(BadgerError):
    """A badge application cannot be reserved."""

    error_code = "invalid_badge_application"
    status_code = 400

    def __init__(self, message: str, badge_application_id: str) -> None:
        self.badge_application_id = badge_application_id
        super().__init__(message)

    def extra(self) -> dict:
        return {"details": {"badge_application_id": self.badge_application_id}}


class BadgeNotFoundError(InvalidBadgeApplicationError):
    def __init__(self, badge_application_id: str) -> None:
        super().__init__(f"Badge application not found: {badge_application_id}", badge_application_id)


class BadgeNotAcceptedError(InvalidBadgeApplicationError):
    def __init__(self, badge_application_id: str, current_status: str) -> None:
        self.current_status = current_status
        super().__init__(
            f"Badge application {badge_application_id} is not accepted (current: {current_status})",
            badge_application_id,
        )

    def extra(self) -> dict:
        return {
            "details": {
                "badge_application_id": self.badge_application_id,
                "current_status": self.current_status,
            }
        }


class ConflictError(BadgerError):
    """Raised on a uniqueness clash or when another actor won a race.

    Args:
        message: Human-readable explanation.
        resource: Optional entity name for logging.
    """

    error_code = "conflict"
    status_code = 409

    def __init__(self, message: str, resource: str | None = None) -> None:
        self.resource = resource
        super().__init__(message)


class ReservationConflictError(ConflictError):
    """A badge application is already reserved by another promotion."""

    error_code = "reservation_conflict"

    def __init__(self, badge_application_id: str, owning_promotion_id: str | None) -> None:
        self.badge_application_id = badge_application_id
        self.owning_promotion_id = owning_promotion_id
        super().__init__(
            f"Badge application {badge_application_id} is already assigned to another promotion",
            resource="PromotionBadge",
        )

    def extra(self) -> dict:
        return {
            "conflict_type": "badge_already_reserved",
            "badge_application_id": self.badge_application_id,
            "owning_promotion_id": self.owning_promotion_id,
        }


class InvalidStatusError(BadgerError):
    """The entity is not in a status that allows the requested action."""

    error_code = "invalid_status"
    status_code = 409

    def __init__(self, message: str, current_status: str) -> None:
        self.current_status = current_status
        super().__init__(message)

    def extra(self) -> dict:
        return {"current_status": self.current_status}


class InvalidStatusTransitionError(InvalidStatusError):
    """Raised by lifecycle transitions (submit/approve/reject) from the wrong status."""

    def __init__(self, entity: str, action: str, current_status: str) -> None:
        self.entity = entity
        self.action = action
        super().__init__(
            f"Cannot {action} {entity} in status '{current_status}'",
            current_status,
        )


class ValidationFailedError(BadgerError):
    """Promotion submission blocked because template requirements are unmet.

    Args:
        missing: list of ``{category, level, count}`` deficits.
    """

    error_code = "validation_failed"
    status_code = 409

    def __init__(self, missing: list[dict]) -> None:
        self.missing = missing
        super().__init__("Promotion does not meet template requirements")

    def extra(self) -> dict:
        return {"missing": self.missing}
