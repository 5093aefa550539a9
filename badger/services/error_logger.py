"""
Error logger — persists unexpected server errors to ``error_logs``.

Best-effort: a failure to persist is logged and otherwise ignored, so the
original error response is always returned.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from badger.models import db
from badger.models.audit import ErrorLog

logger = logging.getLogger(__name__)


def log_error(
    route: str,
    error_code: str,
    message: str,
    *,
    payload: dict | None = None,
    requester_id: str | None = None,
) -> None:
    try:
        # Discard whatever the failed request left in the session
        db.session.rollback()
        db.session.add(ErrorLog(
            route=route[:300],
            error_code=error_code,
            message=message,
            payload=payload,
            requester_id=requester_id,
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("Could not persist error log for %s", route, exc_info=True)
