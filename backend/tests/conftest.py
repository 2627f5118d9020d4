"""
Pytest fixtures for BrewOps backend tests.

Provides the test app, a clean database per test, one account per role and
header helpers for authenticated requests.
"""

from datetime import date, time
from decimal import Decimal

import pytest

from brewops import create_app
from brewops.config import TestingConfig
from brewops.extensions import TOKEN_SERVICE_KEY, db
from brewops.permissions import RoleName
from brewops.services import delivery_service
from brewops.services.auth_service import create_default_roles, create_user, get_role_by_name
from brewops.validation import DeliveryInput


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

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
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def setup_roles(db_session):
    """Seed the fixed roles."""
    create_default_roles()


@pytest.fixture(scope='function')
def make_user(setup_roles):
    """Factory: make_user("alice", RoleName.STAFF, is_active=True) -> User."""
    def _make(username: str, role: RoleName, *, is_active: bool = True):
        return create_user(
            username=username,
            email=f"{username}@brewops.test",
            password=PASSWORD,
            first_name=username.capitalize(),
            last_name="Tester",
            role_id=get_role_by_name(role).id,
            is_active=is_active,
        )
    return _make


@pytest.fixture(scope='function')
def admin(make_user):
    return make_user("admin_user", RoleName.ADMIN)


@pytest.fixture(scope='function')
def manager(make_user):
    return make_user("manager_user", RoleName.MANAGER)


@pytest.fixture(scope='function')
def staff(make_user):
    return make_user("staff_user", RoleName.STAFF)


@pytest.fixture(scope='function')
def supplier(make_user):
    return make_user("supplier_one", RoleName.SUPPLIER)


@pytest.fixture(scope='function')
def other_supplier(make_user):
    return make_user("supplier_two", RoleName.SUPPLIER)


def issue_token(app, user_id: int) -> str:
    """Issue a token directly, skipping the bcrypt round-trip of /login."""
    return app.extensions[TOKEN_SERVICE_KEY].issue(user_id)


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json['data']['token']
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(app, admin):
    return auth_headers(issue_token(app, admin.id))


@pytest.fixture(scope='function')
def manager_headers(app, manager):
    return auth_headers(issue_token(app, manager.id))


@pytest.fixture(scope='function')
def staff_headers(app, staff):
    return auth_headers(issue_token(app, staff.id))


@pytest.fixture(scope='function')
def supplier_headers(app, supplier):
    return auth_headers(issue_token(app, supplier.id))


@pytest.fixture(scope='function')
def other_supplier_headers(app, other_supplier):
    return auth_headers(issue_token(app, other_supplier.id))


def delivery_input(supplier_id: int, **overrides) -> DeliveryInput:
    values = {
        "supplier_id": supplier_id,
        "quantity_kg": Decimal("12.50"),
        "delivery_date": date(2026, 3, 14),
        "delivery_time": time(8, 30),
        "payment_status": None,
    }
    values.update(overrides)
    return DeliveryInput(**values)


def record_delivery(supplier_id: int, staff_id: int, *, now=None, **overrides):
    """Insert a delivery through the service, optionally back-dated via `now`."""
    return delivery_service.create_delivery(
        delivery_input(supplier_id, **overrides), staff_id=staff_id, now=now
    )
