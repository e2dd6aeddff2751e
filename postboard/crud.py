import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .errors import AuthError, ConflictError, InternalError, NotFoundError, ValidationError
from .security import hash_password, verify_password

logger = logging.getLogger(__name__)

MAX_ID = 2**63 - 1


@contextmanager
def _db_errors(db: Session) -> Iterator[None]:
    """Roll back and re-raise low-level SQLAlchemy errors as InternalError.

    The HTTP layer turns InternalError into a generic 500, so nothing from
    the driver reaches the client.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database operation failed")
        raise InternalError() from exc


def _require_credentials(email: Optional[str], password: Optional[str]) -> Tuple[str, str]:
    email = (email or "").strip().lower()
    if not email or not password:
        raise ValidationError("Email and password are required")
    return email, password


def _require_body(body: Optional[str]) -> str:
    if body is None or not body.strip():
        raise ValidationError("Post body is required")
    return body


# User CRUD


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    stmt = select(models.User).where(models.User.email == email)
    with _db_errors(db):
        return db.execute(stmt).scalar_one_or_none()


def create_user(db: Session, email: Optional[str], password: Optional[str]) -> models.User:
    """Register a new user with a bcrypt-hashed password.

    Raises:
        ValidationError: if email or password is missing.
        ConflictError: if the email is already registered.
        InternalError: if the database fails.
    """
    email, password = _require_credentials(email, password)
    if get_user_by_email(db, email) is not None:
        raise ConflictError("User already exists")

    user = models.User(email=email, password_hash=hash_password(password))
    with _db_errors(db):
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email.
            db.rollback()
            raise ConflictError("User already exists") from exc
        db.refresh(user)
    return user


def authenticate_user(db: Session, email: Optional[str], password: Optional[str]) -> models.User:
    """Return the user matching the credentials.

    Unknown email and wrong password raise the same AuthError.
    """
    email, password = _require_credentials(email, password)
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthError("Invalid credentials", status_code=400)
    return user


# Post CRUD


def get_posts(db: Session) -> List[models.Post]:
    stmt = select(models.Post).order_by(models.Post.created_at.desc(), models.Post.id.desc())
    with _db_errors(db):
        return list(db.execute(stmt).scalars().all())


def get_post(db: Session, post_id: int) -> models.Post:
    # Ids beyond the 64-bit row id range cannot match a row.
    if not 0 < post_id <= MAX_ID:
        raise NotFoundError("Post not found")
    with _db_errors(db):
        post = db.get(models.Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def create_post(db: Session, body: Optional[str]) -> models.Post:
    post = models.Post(body=_require_body(body))
    with _db_errors(db):
        db.add(post)
        db.commit()
        db.refresh(post)
    return post


def update_post(db: Session, post_id: int, body: Optional[str]) -> models.Post:
    body = _require_body(body)
    post = get_post(db, post_id)
    with _db_errors(db):
        post.body = body
        db.commit()
        db.refresh(post)
    return post


def delete_post(db: Session, post_id: int) -> schemas.PostOut:
    """Delete a post and return a snapshot of the removed row."""
    post = get_post(db, post_id)
    snapshot = schemas.PostOut.model_validate(post)
    with _db_errors(db):
        db.delete(post)
        db.commit()
    return snapshot


def delete_all_posts(db: Session) -> None:
    with _db_errors(db):
        db.execute(delete(models.Post))
        db.commit()
