import pytest
from werkzeug.security import generate_password_hash

from ecocreds import create_app
from ecocreds.config import TestConfig
from ecocreds.extensions import db
from ecocreds.model import CartItem, User
from ecocreds.services.checkout_service import active_cart


@pytest.fixture
def app():
    """Fresh app with an in-memory SQLite database per test."""
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(email="shopper@example.com", eco_credits=0, role="user", password="secret123", name="Shopper"):
        u = User(
            email=email,
            name=name,
            role=role,
            eco_credits=eco_credits,
            password_hash=generate_password_hash(password),
        )
        db.session.add(u)
        db.session.commit()
        return u
    return _make


@pytest.fixture
def fill_cart(app):
    """fill_cart(user, [(unit_price_minor, qty, co2_per_unit), ...])"""
    def _fill(user, lines):
        cart = active_cart(user)
        for i, (price, qty, co2) in enumerate(lines):
            cart.items.append(CartItem(
                sku=f"SKU-{i}", product_name=f"Item {i}", unit_price=price, quantity=qty, co2_per_unit=co2,
            ))
        db.session.commit()
        return cart
    return _fill


@pytest.fixture
def login(client, make_user):
    """Create a user, log in, return (user, headers)."""
    def _login(email="shopper@example.com", password="secret123", **kwargs):
        user = make_user(email=email, password=password, **kwargs)
        r = client.post("/api/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.get_json()
        token = r.get_json()["data"]["token"]
        return user, {"Authorization": f"Bearer {token}"}
    return _login
