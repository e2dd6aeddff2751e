import os
from typing import Generator

# Point the module-level app at SQLite before anything imports it.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from postboard.config import Settings  # noqa: E402
from postboard.main import create_app  # noqa: E402
from postboard.models import Post  # noqa: E402

TEST_SECRET = "test-secret-key"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret=TEST_SECRET,
        jwt_expires_minutes=60,
        jwt_leeway_seconds=30,
    )


@pytest.fixture()
def app(settings):
    """A fresh application with its own in-memory database."""
    return create_app(settings)


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    """FastAPI test client that also runs the lifespan hook (table creation)."""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def db_session(client, app):
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def signup(client):
    """Register a user through the API and return the issued token."""

    def _signup(email: str = "alice@example.com", password: str = "Secret123!") -> str:
        response = client.post("/signup", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["token"]

    return _signup


@pytest.fixture()
def auth_client(client, signup) -> TestClient:
    """The test client with a valid bearer token attached to every request."""
    client.headers["Authorization"] = f"Bearer {signup()}"
    return client


@pytest.fixture()
def post_factory(db_session):
    """Insert posts directly, bypassing the HTTP API."""

    def _create_post(body: str, created_at=None) -> Post:
        post = Post(body=body)
        if created_at is not None:
            post.created_at = created_at
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _create_post
