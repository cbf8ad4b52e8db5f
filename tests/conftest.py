"""Shared test fixtures for the SalesTrack test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: an admin, two sales users and one prospect
- login: helper fixture that logs the test client in
"""

from datetime import datetime, timedelta, timezone

import pytest
from werkzeug.security import generate_password_hash

from salestrack import create_app
from salestrack.extensions import db as _db
from salestrack.models.follow_up import FollowUp
from salestrack.models.prospect import Prospect
from salestrack.models.user import Profile, User

ADMIN_EMAIL = "admin@salestrack.local"
ADMIN_PASSWORD = "admin123"
SALES_EMAIL = "sari@salestrack.local"
SALES_PASSWORD = "sales123"
OTHER_SALES_EMAIL = "budi@salestrack.local"
OTHER_SALES_PASSWORD = "sales456"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


def make_user(email, password, full_name, role, username=None, phone=None):
    """Insert a user + profile pair directly (no service validation)."""
    user = User(email=email, password_hash=generate_password_hash(password))
    user.profile = Profile(
        email=email,
        username=username,
        phone=phone,
        full_name=full_name,
        role=role,
    )
    _db.session.add(user)
    _db.session.flush()
    return user


@pytest.fixture
def seed_data(app, db_session):
    """Seed an admin, two sales users and one prospect owned by the first.

    Returns a dict of plain ids so tests can use them after commits
    expire the ORM objects.
    """
    admin = make_user(ADMIN_EMAIL, ADMIN_PASSWORD, "Admin User", "admin", username="admin")
    sales = make_user(
        SALES_EMAIL, SALES_PASSWORD, "Sari Sales", "sales",
        username="sari", phone="0811111111",
    )
    other_sales = make_user(
        OTHER_SALES_EMAIL, OTHER_SALES_PASSWORD, "Budi Sales", "sales",
        username="budi",
    )

    prospect = Prospect(
        name="Toko Maju",
        phone="0812000000",
        address="Jl. Merdeka 1",
        need="Website",
        status="awaiting_follow_up",
        sales_id=sales.id,
    )
    _db.session.add(prospect)
    _db.session.commit()

    return {
        "admin_id": admin.id,
        "sales_id": sales.id,
        "other_sales_id": other_sales.id,
        "prospect_id": prospect.id,
    }


@pytest.fixture
def follow_up(seed_data):
    """A pending follow-up on the seeded prospect, assigned by the admin."""
    follow_up = FollowUp(
        prospect_id=seed_data["prospect_id"],
        assigned_by=seed_data["admin_id"],
        assigned_to=seed_data["sales_id"],
        scheduled_at=datetime.now(timezone.utc) + timedelta(days=2),
        status="pending",
        notes="Call before noon",
    )
    _db.session.add(follow_up)
    _db.session.commit()
    return follow_up.id


@pytest.fixture
def login(client):
    """Return a function that logs the test client in as a given user."""

    def _login(email=ADMIN_EMAIL, password=ADMIN_PASSWORD, **extra):
        return client.post(
            "/auth/login",
            json={"email": email, "password": password, **extra},
        )

    return _login


@pytest.fixture
def login_admin(login):
    return lambda: login(ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def login_sales(login):
    return lambda: login(SALES_EMAIL, SALES_PASSWORD)


@pytest.fixture
def login_other_sales(login):
    return lambda: login(OTHER_SALES_EMAIL, OTHER_SALES_PASSWORD)
