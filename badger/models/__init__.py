"""
10xBadger
SQLAlchemy models package.

``db`` is the single Flask-SQLAlchemy extension instance; model modules
import it from here and ``create_app`` binds it to the app.
"""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value) -> str | None:
    return value.isoformat() if value else None
