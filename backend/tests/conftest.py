"""
Pytest fixtures for Redimi backend tests.

Provides test database setup, a store fixture parametrized over both
backends, two tenants for isolation tests, and the test client.
"""

import pytest

from redimi import create_app
from redimi.extensions import db
from redimi.services import customer_service, vendor_service
from redimi.stores import MemoryLoyaltyStore, SqlLoyaltyStore


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'REDIMI_STORE_BACKEND': 'sql',
        'REDIMI_STRICT_BRANCH_SELECTION': False,
        'REDIMI_RETRY_ATTEMPTS': 3,
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
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function', params=['sql', 'memory'])
def loyalty_store(request, db_session):
    """Each ledger/settings test runs once per store backend."""
    if request.param == 'sql':
        return SqlLoyaltyStore()
    return MemoryLoyaltyStore()


@pytest.fixture(scope='function')
def memory_store():
    return MemoryLoyaltyStore()


@pytest.fixture(scope='function')
def vendor_a(loyalty_store):
    """Vendor A (first tenant) in the parametrized store."""
    vendor, _ = vendor_service.create_vendor(
        username="acme", email="owner@acme.test", store=loyalty_store
    )
    return vendor


@pytest.fixture(scope='function')
def vendor_b(loyalty_store):
    """Vendor B (second tenant) in the parametrized store."""
    vendor, _ = vendor_service.create_vendor(
        username="beta", email="owner@beta.test", store=loyalty_store
    )
    return vendor


@pytest.fixture(scope='function')
def customer_a(loyalty_store, vendor_a):
    return customer_service.create_customer(
        vendor_a.id, name="Ana", contact="+5215550001", store=loyalty_store
    )


@pytest.fixture(scope='function')
def customer_b(loyalty_store, vendor_b):
    return customer_service.create_customer(
        vendor_b.id, name="Beto", contact="+5215550002", store=loyalty_store
    )


@pytest.fixture(scope='function')
def api_vendor(db_session):
    """Vendor registered in the app's configured (SQL) store. Returns (vendor, api_key)."""
    return vendor_service.create_vendor(username="api-vendor", email="api@vendor.test")


@pytest.fixture(scope='function')
def other_api_vendor(db_session):
    return vendor_service.create_vendor(username="other-vendor", email="other@vendor.test")


def auth_headers(api_key: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {api_key}'}


@pytest.fixture(scope='function')
def vendor_headers(api_vendor):
    return auth_headers(api_vendor[1])


@pytest.fixture(scope='function')
def other_vendor_headers(other_api_vendor):
    return auth_headers(other_api_vendor[1])
