"""
Pytest fixtures for storefront backend tests.

Provides an isolated in-memory app per test, seeded roles, users per role,
login-based auth headers and a small catalog.
"""

import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.models import Category, Product, ProductVariant
from storefront.permissions import (
    ACCOUNT,
    ADMIN,
    CUSTOMER,
    ORDER_MANAGER,
    PRODUCT_MANAGER,
    SHIPPER,
)
from storefront.services import auth_service, role_service

from .helpers import DEFAULT_PASSWORD, TEST_SIGNING_KEY, auth_headers, get_auth_token


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SIGNING_KEY': TEST_SIGNING_KEY,
        'BCRYPT_WORK_FACTOR': 4,
    })

    with app.app_context():
        db.create_all()
        role_service.seed_default_roles()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


def role_id(role_name: str) -> int:
    return role_service.get_role_by_name(role_name).id


@pytest.fixture(scope='function')
def make_user(app):
    """Factory: make_user("alice", ORDER_MANAGER) -> User (password DEFAULT_PASSWORD)."""
    def _make(username: str, role_name: str = CUSTOMER, password: str = DEFAULT_PASSWORD, email=None):
        return auth_service.create_user(username, password, email, None, role_id(role_name), True)
    return _make


def _headers_for(client, make_user, username, role_name):
    make_user(username, role_name)
    return auth_headers(get_auth_token(client, username))


@pytest.fixture
def admin_headers(client, make_user):
    return _headers_for(client, make_user, "admin", ADMIN)


@pytest.fixture
def product_manager_headers(client, make_user):
    return _headers_for(client, make_user, "pm", PRODUCT_MANAGER)


@pytest.fixture
def order_manager_headers(client, make_user):
    return _headers_for(client, make_user, "om", ORDER_MANAGER)


@pytest.fixture
def account_headers(client, make_user):
    return _headers_for(client, make_user, "accountant", ACCOUNT)


@pytest.fixture
def shipper_headers(client, make_user):
    return _headers_for(client, make_user, "shipper", SHIPPER)


@pytest.fixture
def customer_headers(client, make_user):
    return _headers_for(client, make_user, "carol", CUSTOMER)


@pytest.fixture
def other_customer_headers(client, make_user):
    return _headers_for(client, make_user, "dave", CUSTOMER)


@pytest.fixture
def category(app):
    category = Category(name="Shirts", description="Tops")
    db.session.add(category)
    db.session.commit()
    return category


@pytest.fixture
def product(app, category):
    """Product id 1: 10 in stock, 25.00, no discount."""
    product = Product(
        category_id=category.id,
        name="Linen Shirt",
        price_cents=2500,
        discount_percent=0,
        stock_quantity=10,
    )
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture
def variant(app, product):
    variant = ProductVariant(product_id=product.id, size="M", color="Blue", stock_quantity=3)
    db.session.add(variant)
    db.session.commit()
    return variant
