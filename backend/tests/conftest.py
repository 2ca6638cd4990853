"""
Pytest fixtures for vendorpos backend tests.

Provides an in-memory application, per-test table wipe, two tenants with
stock and customers, and authenticated client helpers.
"""

import pytest
from vendorpos import create_app
from vendorpos.config import TestConfig
from vendorpos.extensions import db
from vendorpos.models import StockItem, CustomerProfile
from vendorpos.services.auth_service import create_vendor
from vendorpos.services.terminal_service import TerminalRegistry, REGISTRY_KEY

VENDOR_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(config_object=TestConfig)

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
        app.extensions[REGISTRY_KEY] = TerminalRegistry()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def vendor_a(db_session):
    """Vendor A (first tenant), default tax rate."""
    return create_vendor(name="Glow Cosmetics", email="owner@glow.local", password=VENDOR_PASSWORD)


@pytest.fixture(scope='function')
def vendor_b(db_session):
    """Vendor B (second tenant)."""
    return create_vendor(name="Bloom Beauty", email="owner@bloom.local", password=VENDOR_PASSWORD)


def make_stock(db_session, vendor, name, quantity, price_cents, cost_cents=None, category=None, threshold=None):
    item = StockItem(
        vendor_id=vendor.id,
        name=name,
        quantity=quantity,
        price_cents=price_cents,
        cost_cents=cost_cents,
        category=category,
        low_stock_threshold=threshold,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def lipstick(db_session, vendor_a):
    """Lipstick A: 10 on hand at 500.00."""
    return make_stock(db_session, vendor_a, "Lipstick A", 10, 50000, cost_cents=30000, category="Lips")


@pytest.fixture(scope='function')
def soap(db_session, vendor_a):
    """Soap: 3 on hand at 200.00, no cost price."""
    return make_stock(db_session, vendor_a, "Soap", 3, 20000, category="Bath")


@pytest.fixture(scope='function')
def serum_b(db_session, vendor_b):
    """Stock owned by vendor B."""
    return make_stock(db_session, vendor_b, "Serum", 7, 90000, category="Skin")


@pytest.fixture(scope='function')
def customer_a(db_session, vendor_a):
    """Registered loyalty customer of vendor A."""
    profile = CustomerProfile(vendor_id=vendor_a.id, name="Nimali Perera", phone="0771234567")
    db_session.add(profile)
    db_session.commit()
    return profile


def get_auth_token(client, email: str, password: str = VENDOR_PASSWORD) -> str:
    """Helper to get auth token for a vendor."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(client, vendor_a):
    return auth_headers(get_auth_token(client, vendor_a.email))


@pytest.fixture(scope='function')
def headers_b(client, vendor_b):
    return auth_headers(get_auth_token(client, vendor_b.email))
