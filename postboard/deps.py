import logging
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings
from .errors import AuthError
from .security import decode_access_token

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def _unauthorized() -> AuthError:
    return AuthError("Unauthorized", status_code=401, headers={"WWW-Authenticate": "Bearer"})


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    settings: Settings = Depends(app_settings),
) -> int:
    """Gate a route behind a valid ``Authorization: Bearer <token>`` header.

    The authenticated user id is returned and also stored on
    ``request.state.user_id``.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized()

    try:
        user_id = decode_access_token(
            token=credentials.credentials,
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            leeway=settings.jwt_leeway_seconds,
        )
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        raise _unauthorized() from exc

    request.state.user_id = user_id
    return user_id
