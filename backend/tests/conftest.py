"""
Pytest fixtures for Stockroom backend tests.

Provides test database setup, seeded users per role, bearer headers and
small factories for inventory records.
"""

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import User
from stockroom.schemas import PRODUCT_CREATE, RENTAL_ASSET_CREATE
from stockroom.services import products_service, rental_asset_service, session_service
from stockroom.services.auth_service import hash_password
from stockroom.validation import validate_payload

PASSWORD = "admin123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'RESET_TOKEN_IN_RESPONSE': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear all rows (schema stays) before each test."""
    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='session')
def password_hash():
    """One bcrypt hash of PASSWORD for all seeded users (cost 12 is slow)."""
    return hash_password(PASSWORD)


def _make_user(name: str, email: str, role: str, password_hash: str) -> User:
    user = User(name=name, email=email, role=role, password_hash=password_hash)
    db.session.add(user)
    db.session.commit()
    return user


def auth_headers(user: User) -> dict:
    """Bearer headers for a fresh session of `user`."""
    _session, token = session_service.create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def super_admin(db_session, password_hash):
    return _make_user("Owner", "owner@stockroom.test", "super_admin", password_hash)


@pytest.fixture(scope='function')
def admin(db_session, password_hash):
    return _make_user("Manager", "manager@stockroom.test", "admin", password_hash)


@pytest.fixture(scope='function')
def plain_user(db_session, password_hash):
    return _make_user("Clerk", "clerk@stockroom.test", "user", password_hash)


@pytest.fixture(scope='function')
def super_admin_headers(super_admin):
    return auth_headers(super_admin)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture(scope='function')
def user_headers(plain_user):
    return auth_headers(plain_user)


@pytest.fixture(scope='function')
def make_product(admin):
    """Factory: create a product through the service, returning its dict."""
    def _make(**overrides):
        data = {"name": "Widget", "sku": "WID-001", "stock_type": "buy", "price": 10.0}
        data.update(overrides)
        return products_service.create_product(
            actor_id=admin.id,
            patch=validate_payload(PRODUCT_CREATE, data),
        )
    return _make


@pytest.fixture(scope='function')
def make_asset(admin):
    """Factory: create a rental asset through the service, returning its dict."""
    def _make(product_id: int, asset_code: str, **overrides):
        data = {"product_id": product_id, "asset_code": asset_code}
        data.update(overrides)
        return rental_asset_service.create_asset(
            actor_id=admin.id,
            data=validate_payload(RENTAL_ASSET_CREATE, data),
        )
    return _make


@pytest.fixture(scope='function')
def camera(make_product):
    """Rental-type product CAM-001."""
    return make_product(name="Camera", sku="CAM-001", stock_type="rental", daily_rental_rate=25.0)
