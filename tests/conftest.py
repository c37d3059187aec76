"""
Pytest configuration and fixtures.
"""

from datetime import datetime

import pytest

from app import create_app, db
from app.config import Config
from app.models import Batch, BatchOrigin, BatchStatus, Order, OrderStatus, PackingStatus, User, UserRole
from app.services.tokens import issue_token


class IntakeTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STATS_TIMEZONE = "UTC"
    STATS_TREND_DAYS = 90
    API_TOKEN_MAX_AGE = 3600


@pytest.fixture
def app():
    """Application with a fresh in-memory database."""
    app = create_app(IntakeTestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory for users."""
    counter = {"n": 0}

    def _make_user(role=UserRole.USER, created_at=None, **kwargs):
        counter["n"] += 1
        user = User(
            email=kwargs.pop("email", f"user{counter['n']}@example.org"),
            first_name=kwargs.pop("first_name", "Test"),
            last_name=kwargs.pop("last_name", f"User{counter['n']}"),
            role=role,
            **kwargs,
        )
        if created_at is not None:
            user.created_at = created_at
        user.set_password("correct-horse")
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, email="admin@example.org", first_name="Ada", last_name="Admin")


@pytest.fixture
def requester(make_user):
    return make_user(email="rita@example.org", first_name="Rita", last_name="Requester")


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {issue_token(admin)}"}


@pytest.fixture
def requester_headers(requester):
    return {"Authorization": f"Bearer {issue_token(requester)}"}


@pytest.fixture
def make_batch(app):
    """Factory for batch rows that does not touch the current-batch pointer."""

    def _make_batch(batch_id, created_at=None, origin=BatchOrigin.MANUAL):
        created_at = created_at or datetime(2024, 3, 1, 12, 0)
        batch = Batch(
            id=batch_id,
            name=f"Batch {batch_id}",
            start_date=created_at,
            origin=origin,
            status=BatchStatus.OPEN,
            created_at=created_at,
        )
        db.session.add(batch)
        db.session.commit()
        return batch

    return _make_batch


@pytest.fixture
def make_order(app):
    """Factory for order rows, bypassing the submission checks."""

    def _make_order(user, batch_id=None, created_at=None, status=OrderStatus.PENDING, **kwargs):
        order = Order(
            user_id=user.id,
            batch_id=batch_id,
            status=status,
            user_email=user.email,
            user_name=user.full_name,
            confirmed_pickup=True,
            dry_goods_status=kwargs.pop("dry_goods_status", PackingStatus.PENDING),
            fresh_goods_status=kwargs.pop("fresh_goods_status", PackingStatus.PENDING),
            created_at=created_at or datetime(2024, 3, 14, 15, 0),
            **kwargs,
        )
        db.session.add(order)
        db.session.commit()
        return order

    return _make_order


@pytest.fixture
def order_payload():
    """A valid request form submission."""
    return {
        "confirmed_pickup": True,
        "selected_items": ["rice", "eggs", "pastaSauce", "iceCream"],
        "items": "  size 10 shoes if available ",
        "dietary_restrictions": {"has_restrictions": True, "gluten_free_count": 1, "vegan_count": 0},
        "baby_needs": {
            "has_baby": True,
            "needs": {"diapers": True, "formula": False},
            "details": {"diaper_size": "4", "formula_type": "soy", "other": ""},
        },
    }


@pytest.fixture
def api_app():
    """Application for HTTP tests.

    No app context stays pushed, so every request gets its own ``g`` and
    therefore its own Flask-Login user.
    """
    app = create_app(IntakeTestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def api_client(api_app):
    return api_app.test_client()


@pytest.fixture
def seed_user(api_app):
    """Create a user and return (user id, bearer headers)."""

    def _seed_user(email, role=UserRole.USER, password="correct-horse"):
        with api_app.app_context():
            user = User(email=email, first_name=email.split("@")[0].title(), last_name="Tester", role=role)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id, {"Authorization": f"Bearer {issue_token(user)}"}

    return _seed_user
