"""Pytest fixtures for the storefront order tests."""

import pytest

from storefront.main import create_app
from storefront.models import db, User
from storefront.utils.auth import issue_token


class RecordingSink:
    """Notification sink that records every dispatch instead of sending mail."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, kind, payload):
        if self.fail:
            raise RuntimeError("smtp indisponível")
        self.sent.append((kind, payload))

    def kinds(self):
        return [kind for kind, _ in self.sent]


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def app(sink):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "MAIL_ASYNC": False,
        "NOTIFICATION_SINK": sink,
        "DEFAULT_COUNTRY": "Nigeria",
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return app.extensions["order_service"]


@pytest.fixture
def user(app):
    u = User(email="jane@example.com", name="Jane Doe")
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture
def admin_headers(app):
    token = issue_token({"sub": "admin-1", "type": "admin", "email": "admin@example.com", "name": "Admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(app, user):
    token = issue_token({"sub": user.id, "type": "user", "email": user.email, "name": user.name})
    return {"Authorization": f"Bearer {token}"}


def order_payload(**overrides):
    data = {
        "customerName": "Jane Doe",
        "customerEmail": "jane@example.com",
        "customerPhone": "+2348000000000",
        "items": [{"productId": "p1", "productName": "Widget", "quantity": 2, "price": 100}],
        "total": 200,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_order(service):
    def _make(**overrides):
        return service.create_order(order_payload(**overrides))
    return _make


@pytest.fixture
def payload():
    return order_payload
