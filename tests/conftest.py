import pytest

import credentials
from app import create_app
from models import db


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "catalog-test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "LOG_LEVEL": "WARNING",
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def make_user(app_ctx):
    def _make(username="alice", email=None, password="Secret123!"):
        return credentials.register_user(username, email or f"{username}@example.com", password)
    return _make


def register(client, username, password="Secret123!", email=None):
    return client.post(
        "/register",
        data={"username": username, "email": email or f"{username}@example.com", "password": password},
    )


def login(client, identifier, password="Secret123!"):
    return client.post("/login", data={"identifier": identifier, "password": password})


def upload(client, title, author="Jane Doe", year="2020-05-01", description=""):
    return client.post(
        "/books/upload",
        data={"title": title, "author": author, "publicationYear": year, "description": description},
    )
