"""
Pytest fixtures for FashionHub backend tests.

Provides test database setup, user/token fixtures, catalog factories, and test client.
"""

import bcrypt
import pytest

from fashionhub import create_app
from fashionhub.extensions import db
from fashionhub.models import User, Product, Supplier
from fashionhub.models.auth import ROLE_ADMIN, ROLE_SALES_PERSON
from fashionhub.services import session_service, purchase_order_service


TEST_PASSWORD = "secret123"

# Low-cost hash: fixtures create users on every test
_TEST_PASSWORD_HASH = bcrypt.hashpw(TEST_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TAX_RATE_BPS': 500,
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


def _make_user(db_session, **overrides) -> User:
    fields = {
        "name": "Test User",
        "email": "user@fashionhub.test",
        "phone": "+91 90000 00000",
        "password_hash": _TEST_PASSWORD_HASH,
        "role": ROLE_SALES_PERSON,
        "status": "active",
    }
    fields.update(overrides)
    user = User(**fields)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(
        db_session,
        name="Admin",
        email="admin@fashionhub.test",
        role=ROLE_ADMIN,
        can_refund=True,
        can_view_reports=True,
        max_discount_percent=50,
    )


@pytest.fixture(scope='function')
def sales_user(db_session):
    return _make_user(
        db_session,
        name="Sales Person",
        email="sales@fashionhub.test",
        role=ROLE_SALES_PERSON,
        max_discount_percent=10,
    )


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory for extra users."""
    def _factory(**overrides):
        return _make_user(db_session, **overrides)
    return _factory


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _, token = session_service.create_session(user_id=admin_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def sales_headers(sales_user):
    _, token = session_service.create_session(user_id=sales_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(stock=10, price_cents=1000, ...)."""
    counter = {"n": 0}

    def _factory(**overrides):
        counter["n"] += 1
        fields = {
            "name": f"Product {counter['n']}",
            "barcode": f"BC{counter['n']:06d}",
            "price_cents": 1000,
            "stock": 0,
            "category": "Shirts",
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product
    return _factory


@pytest.fixture(scope='function')
def supplier(db_session):
    s = Supplier(name="Fashion Textiles Ltd", city="Mumbai", contact_person="Rajesh Kumar")
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture(scope='function')
def make_purchase_order(supplier, admin_user):
    """Factory: make_purchase_order([(product, qty), ...])."""
    def _factory(lines, **kwargs):
        items = [
            {"product_id": product.id, "quantity": qty, "unit_price_cents": 500}
            for product, qty in lines
        ]
        return purchase_order_service.create_purchase_order(
            supplier_id=kwargs.pop("supplier_id", supplier.id),
            items=items,
            created_by_user_id=admin_user.id,
            **kwargs,
        )
    return _factory
