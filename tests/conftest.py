"""Shared fixtures.

Each test gets its own application built through ``create_app`` on a
temporary SQLite file, with the lookup tables seeded. Route tests use
the Flask test client; service and persistence tests push an
application context and work with ``db.session`` directly.
"""
from __future__ import annotations

import pytest

from habit_matrix import create_app, db
from habit_matrix.repositories import UnitOfWork
from habit_matrix.seed import seed_lookups
from habit_matrix.services import AccountService

PASSWORD = "correct-horse-battery"


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
            "JWT_SECRET_KEY": "test-secret-key-with-enough-length-for-hs256",
            "DB_RETRY_BASE_DELAY": 0.0,
            "LOG_LEVEL": "WARNING",
        }
    )
    with app.app_context():
        db.create_all()
        seed_lookups(db.session)
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield
        db.session.remove()


def make_user(username: str):
    accounts = AccountService(UnitOfWork(db.session))
    return accounts.register(
        {
            "username": username,
            "email": f"{username}@example.com",
            "password": PASSWORD,
            "confirm_password": PASSWORD,
        }
    )


@pytest.fixture
def alice(ctx):
    return make_user("alice")


@pytest.fixture
def bob(ctx):
    return make_user("bob")


@pytest.fixture
def make_uow(ctx):
    """Build a unit of work acting as ``user`` (anonymous when omitted)."""

    def _make(user=None) -> UnitOfWork:
        return UnitOfWork(db.session, user.id if user is not None else None, sleep=lambda seconds: None)

    return _make


@pytest.fixture
def login(client):
    """Register and log in a user through the API, returning auth headers."""

    def _login(username: str) -> dict:
        response = client.post(
            "/api/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": PASSWORD,
                "confirm_password": PASSWORD,
            },
        )
        assert response.status_code == 201, response.get_json()
        response = client.post("/api/login", json={"username": username, "password": PASSWORD})
        assert response.status_code == 200, response.get_json()
        token = response.get_json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _login
