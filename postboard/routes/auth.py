import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..config import Settings
from ..database import get_db
from ..deps import app_settings
from ..security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _issue_token(settings: Settings, user_id: int) -> schemas.TokenOut:
    token = create_access_token(
        secret=settings.jwt_secret,
        user_id=user_id,
        expires_minutes=settings.jwt_expires_minutes,
        algorithm=settings.jwt_algorithm,
    )
    return schemas.TokenOut(token=token)


@router.post("/signup", response_model=schemas.TokenOut)
def signup(
    payload: schemas.Credentials,
    db: Session = Depends(get_db),
    settings: Settings = Depends(app_settings),
):
    user = crud.create_user(db, payload.email, payload.password)
    logger.info("Registered user id=%s", user.id)
    return _issue_token(settings, user.id)


@router.post("/login", response_model=schemas.TokenOut)
def login(
    payload: schemas.Credentials,
    db: Session = Depends(get_db),
    settings: Settings = Depends(app_settings),
):
    user = crud.authenticate_user(db, payload.email, payload.password)
    logger.info("User id=%s logged in", user.id)
    return _issue_token(settings, user.id)
