"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in badger/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from badger.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Blueprint name → limit string (per remote IP)
BLUEPRINT_LIMITS = {
    "promotion": "120/minute",
    "badge_application": "120/minute",
    "template": "60/minute",
    "catalog": "60/minute",
    "user": "200/minute",
    "notification": "200/minute",
}


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Promotion / badge application workflows: 120/minute
        - Admin configuration (templates, catalog): 60/minute
        - Read-mostly endpoints (me, notifications): 200/minute
        - Health check: exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name, limit in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(limit)(bp)

    # Health probes are exempt
    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured — %s",
                    ", ".join(f"{k}: {v}" for k, v in BLUEPRINT_LIMITS.items()))
