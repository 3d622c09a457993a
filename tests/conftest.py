"""Shared test fixtures for the marketplace test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- store: the app's RecordStore
- seed_data: catalog rows, an admin, a business, and three vendors
- make_project: helper that creates a draft project for the seeded business
"""

import pytest
from werkzeug.security import generate_password_hash

from marketplace import create_app
from marketplace.extensions import db as _db
from marketplace.models.catalog import CoverageArea, ServiceCategory
from marketplace.models.user import User
from marketplace.models.vendor import VendorProfile
from marketplace.services import lifecycle_service

PASSWORD = "test-pass-123"


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


@pytest.fixture
def store(app, db_session):
    return app.extensions["record_store"]


def _user(email, role, full_name, company_name=None):
    user = User(
        email=email,
        password_hash=generate_password_hash(PASSWORD),
        full_name=full_name,
        role=role,
        company_name=company_name,
    )
    _db.session.add(user)
    _db.session.flush()
    return user


def _vendor(email, company_name, services, areas, approved=True):
    user = _user(email, "vendor", company_name, company_name)
    profile = VendorProfile(
        user_id=user.id,
        company_name=company_name,
        contact_email=email,
        is_approved=approved,
    )
    profile.services = services
    profile.coverage_areas = areas
    _db.session.add(profile)
    _db.session.flush()
    return user


@pytest.fixture
def seed_data(app, db_session):
    """Seed catalog rows and users.

    Vendor A: approved, IT Services, covers TX    (matches TX IT projects)
    Vendor B: approved, IT Services, covers CA only
    Vendor C: NOT approved, IT Services, covers TX

    Returns plain ids so tests can use them across commits.
    """
    it = ServiceCategory(name="IT Services", description="Managed IT")
    cleaning = ServiceCategory(name="Commercial Cleaning", description="Office cleaning")
    _db.session.add_all([it, cleaning])

    houston = CoverageArea(state="TX", region="Houston", zip_codes=["77001"])
    la = CoverageArea(state="CA", region="Los Angeles", zip_codes=["90001"])
    _db.session.add_all([houston, la])
    _db.session.flush()

    admin = _user("admin@marketplace.test", "admin", "Admin User")
    business = _user("owner@acme.test", "business", "Dana Owner", "Acme Logistics")
    other_business = _user("owner@globex.test", "business", "Hank Other", "Globex")

    vendor_a = _vendor("a@vendor.test", "Alpha IT", [it], [houston])
    vendor_b = _vendor("b@vendor.test", "Bravo IT", [it], [la])
    vendor_c = _vendor("c@vendor.test", "Charlie IT", [it], [houston], approved=False)

    _db.session.commit()

    return {
        "admin_id": admin.id,
        "business_id": business.id,
        "other_business_id": other_business.id,
        "vendor_a_id": vendor_a.id,
        "vendor_b_id": vendor_b.id,
        "vendor_c_id": vendor_c.id,
        "it_id": it.id,
        "cleaning_id": cleaning.id,
        "houston_id": houston.id,
        "la_id": la.id,
        "password": PASSWORD,
    }


@pytest.fixture
def make_project(store, seed_data):
    """Create (and commit) a draft IT Services project in TX."""

    def _make(**overrides):
        data = {
            "title": "Office network refresh",
            "description": "Replace switches and Wi-Fi in a 40-seat office.",
            "service_category": "IT Services",
            "project_state": "TX",
            "project_city": "Houston",
        }
        data.update(overrides)
        business_id = data.pop("business_id", seed_data["business_id"])
        project = lifecycle_service.create_project(store, business_id, data)
        _db.session.commit()
        return project.id

    return _make


@pytest.fixture
def published_project(store, seed_data, make_project):
    """An open TX / IT Services project already routed to vendor A."""
    project_id = make_project()
    lifecycle_service.publish_project(store, project_id, seed_data["business_id"])
    _db.session.commit()
    return project_id
