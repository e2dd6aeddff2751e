from datetime import datetime, timedelta, timezone
from http import HTTPStatus

import jwt
import pytest
from fastapi import Depends, Request

from postboard import models
from postboard.deps import require_user_id
from postboard.security import create_access_token

PROTECTED_ROUTES = [
    ("get", "/posts"),
    ("get", "/posts/1"),
    ("post", "/posts"),
    ("put", "/posts/1"),
    ("delete", "/posts/1"),
    ("delete", "/posts"),
]


def _call(client, method, path, headers=None):
    kwargs = {"headers": headers or {}}
    if method in ("post", "put"):
        kwargs["json"] = {"body": "text"}
    return getattr(client, method)(path, **kwargs)


def _token_with_exp(secret, exp, sub="1"):
    return jwt.encode({"sub": sub, "exp": int(exp.timestamp())}, secret, algorithm="HS256")


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test_protected_route_without_token_is_unauthorized(client, method, path):
    response = _call(client, method, path)
    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert response.json() == {"message": "Unauthorized"}
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test_protected_route_with_garbage_token_is_unauthorized(client, method, path):
    response = _call(client, method, path, headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED


@pytest.mark.parametrize(
    "header",
    ["Token abc", "Bearer", "Basic dXNlcjpwYXNz", ""],
)
def test_malformed_authorization_header_is_unauthorized(client, header):
    response = client.get("/posts", headers={"Authorization": header})
    assert response.status_code == HTTPStatus.UNAUTHORIZED


def test_token_signed_with_another_secret_is_rejected(client):
    token = create_access_token(secret="someone-else", user_id=1, expires_minutes=5)
    response = client.get("/posts", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED


def test_expired_token_is_rejected(client, settings):
    exp = datetime.now(timezone.utc) - timedelta(seconds=settings.jwt_leeway_seconds + 60)
    token = _token_with_exp(settings.jwt_secret, exp)
    response = client.get("/posts", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED


def test_recently_expired_token_within_leeway_is_accepted(client, settings):
    exp = datetime.now(timezone.utc) - timedelta(seconds=5)
    token = _token_with_exp(settings.jwt_secret, exp)
    response = client.get("/posts", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == HTTPStatus.OK


def test_token_without_expiry_is_rejected(client, settings):
    token = jwt.encode({"sub": "1"}, settings.jwt_secret, algorithm="HS256")
    response = client.get("/posts", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED


def test_token_with_non_numeric_subject_is_rejected(client, settings):
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = _token_with_exp(settings.jwt_secret, exp, sub="alice")
    response = client.get("/posts", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED


def test_valid_token_reaches_handler(client, signup):
    token = signup()
    response = client.get("/posts", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == HTTPStatus.OK


def test_authenticated_user_id_is_stored_on_request_state(app, client, signup, db_session):
    @app.get("/whoami", dependencies=[Depends(require_user_id)])
    def whoami(request: Request):
        return {"user_id": request.state.user_id}

    token = signup(email="carol@example.com")
    response = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

    user = db_session.query(models.User).filter_by(email="carol@example.com").one()
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"user_id": user.id}
