"""
Flask-Migrate / Alembic entry point.

Usage:
    flask db upgrade
    flask db migrate -m "description"
    flask seed-catalog-badges
"""

from badger import create_app

app = create_app()
