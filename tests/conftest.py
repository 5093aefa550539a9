"""
Shared pytest fixtures for the 10xBadger test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_* factories: ORM rows flushed into the shared session
    - auth_header: Bearer header for a user, signed like the auth provider does
"""

import uuid
from datetime import date

import pytest

from badger import create_app
from badger.models import db as _db
from badger.models.badge_application import BadgeApplication
from badger.models.catalog import CatalogBadge
from badger.models.promotion import Promotion, PromotionBadge
from badger.models.promotion_template import PromotionTemplate
from badger.models.user import User
from badger.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    def _make_user(email: str | None = None, is_admin: bool = False) -> User:
        user_id = str(uuid.uuid4())
        u = User(
            id=user_id,
            email=email or f"{user_id[:8]}@example.com",
            display_name="Admin User" if is_admin else "Test User",
            is_admin=is_admin,
        )
        _db.session.add(u)
        _db.session.flush()
        return u
    return _make_user


@pytest.fixture()
def make_catalog_badge():
    def _make_catalog_badge(category: str = "technical", level: str = "gold", status: str = "active") -> CatalogBadge:
        b = CatalogBadge(
            title=f"{category.capitalize()} {level.capitalize()} {uuid.uuid4().hex[:6]}",
            category=category,
            level=level,
            status=status,
        )
        _db.session.add(b)
        _db.session.flush()
        return b
    return _make_catalog_badge


@pytest.fixture()
def make_application(make_catalog_badge):
    def _make_application(
        applicant: User,
        category: str = "technical",
        level: str = "gold",
        status: str = "accepted",
    ) -> BadgeApplication:
        badge = make_catalog_badge(category, level)
        a = BadgeApplication(
            applicant_id=applicant.id,
            catalog_badge_id=badge.id,
            catalog_badge_version=badge.version,
            category=category,
            level=level,
            status=status,
            date_of_application=date(2026, 1, 15),
        )
        _db.session.add(a)
        _db.session.flush()
        return a
    return _make_application


@pytest.fixture()
def make_template():
    def _make_template(
        rules: list | None = None,
        path: str = "technical",
        from_level: str | None = None,
        to_level: str | None = None,
        is_active: bool = True,
    ) -> PromotionTemplate:
        suffix = uuid.uuid4().hex[:6]
        t = PromotionTemplate(
            name=f"Template {suffix}",
            path=path,
            from_level=from_level or f"J{suffix}",
            to_level=to_level or f"S{suffix}",
            rules=rules if rules is not None else [{"category": "technical", "level": "gold", "count": 1}],
            is_active=is_active,
        )
        _db.session.add(t)
        _db.session.flush()
        return t
    return _make_template


@pytest.fixture()
def make_promotion():
    def _make_promotion(owner: User, template: PromotionTemplate, status: str = "draft") -> Promotion:
        p = Promotion(
            template_id=template.id,
            created_by=owner.id,
            path=template.path,
            from_level=template.from_level,
            to_level=template.to_level,
            status=status,
        )
        _db.session.add(p)
        _db.session.flush()
        return p
    return _make_promotion


@pytest.fixture()
def reserve():
    def _reserve(promotion: Promotion, application: BadgeApplication, consumed: bool = False) -> PromotionBadge:
        pb = PromotionBadge(
            promotion_id=promotion.id,
            badge_application_id=application.id,
            assigned_by=promotion.created_by,
            consumed=consumed,
        )
        _db.session.add(pb)
        _db.session.flush()
        return pb
    return _reserve


# ── Auth ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def auth_header():
    def _auth_header(user: User) -> dict:
        return {"Authorization": f"Bearer {generate_access_token(user.id, user.email)}"}
    return _auth_header


@pytest.fixture()
def employee(make_user):
    return make_user("employee@example.com")


@pytest.fixture()
def admin(make_user):
    return make_user("admin@example.com", is_admin=True)
