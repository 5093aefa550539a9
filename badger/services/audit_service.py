"""
Best-effort audit recording.

Lifecycle events are written with ``write_audit`` inside the caller's
transaction.  Events that describe a *failed* request (auth failures,
reservation conflicts) have no transaction to ride on, so they are
committed on their own here and never affect the response.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from badger.models import db
from badger.models.audit import write_audit

logger = logging.getLogger(__name__)


def record_event(event_type: str, actor_id: str | None = None, payload: dict | None = None) -> bool:
    """Commit a standalone audit row. Returns False when the write failed."""
    try:
        write_audit(event_type=event_type, actor_id=actor_id, payload=payload)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning(
            "Could not record audit event %s", event_type,
            exc_info=True, extra={"event_type": event_type},
        )
        return False
    return True
