"""
10xBadger
Flask Application Factory.

Usage:
    from badger import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from badger.config import config
from badger.models import db
from badger.middleware.error_handlers import init_error_handlers
from badger.middleware.jwt_auth import init_jwt_middleware
from badger.middleware.logging_config import configure_logging
from badger.middleware.rate_limiter import init_rate_limits
from badger.middleware.security_headers import init_security_headers
from badger.middleware.timing import init_request_timing

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # per-blueprint limits only
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiate so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Middleware ───────────────────────────────────────────────────────
    init_security_headers(app)
    init_request_timing(app)
    init_jwt_middleware(app)
    init_error_handlers(app)

    # ── Request guards (body size + Content-Type) ────────────────────────
    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic and create_all can see them ─────────
    from badger.models import user as _user_models                    # noqa: F401
    from badger.models import catalog as _catalog_models              # noqa: F401
    from badger.models import badge_application as _application_models  # noqa: F401
    from badger.models import promotion_template as _template_models  # noqa: F401
    from badger.models import promotion as _promotion_models          # noqa: F401
    from badger.models import audit as _audit_models                  # noqa: F401
    from badger.models import notification as _notification_models    # noqa: F401

    # ── Auto-create tables in development (migrations own production) ────
    if app.config.get("DEBUG"):
        with app.app_context():
            os.makedirs(app.instance_path, exist_ok=True)
            db.create_all()
            app.logger.info("db.create_all() completed successfully")

    # ── Blueprints ───────────────────────────────────────────────────────
    from badger.blueprints.badge_application_bp import badge_application_bp
    from badger.blueprints.catalog_bp import catalog_bp
    from badger.blueprints.health_bp import health_bp
    from badger.blueprints.notification_bp import notification_bp
    from badger.blueprints.promotion_bp import promotion_bp
    from badger.blueprints.template_bp import template_bp
    from badger.blueprints.user_bp import user_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(badge_application_bp)
    app.register_blueprint(template_bp)
    app.register_blueprint(promotion_bp)
    app.register_blueprint(notification_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-catalog-badges")
    def seed_catalog_badges_cmd():
        """Seed the default badge catalog (5 topics x 3 levels per category)."""
        from badger.services.catalog_seed import CATALOG_BADGES
        from badger.services.catalog_service import seed_catalog
        count = seed_catalog(CATALOG_BADGES)
        logger.info("Seeded %s new catalog badges.", count)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
