from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..deps import require_user_id

router = APIRouter(
    prefix="/posts",
    tags=["posts"],
    dependencies=[Depends(require_user_id)],
)


@router.get("", response_model=List[schemas.PostOut])
def list_posts(db: Session = Depends(get_db)):
    """Return all posts, newest first."""
    return crud.get_posts(db)


@router.get("/{post_id}", response_model=schemas.PostOut)
def get_post(post_id: int, db: Session = Depends(get_db)):
    return crud.get_post(db, post_id)


@router.post("", response_model=schemas.PostOut, status_code=status.HTTP_201_CREATED)
def create_post(post_in: schemas.PostIn, db: Session = Depends(get_db)):
    return crud.create_post(db, post_in.body)


@router.put("/{post_id}", response_model=schemas.PostOut)
def update_post(post_id: int, post_in: schemas.PostIn, db: Session = Depends(get_db)):
    return crud.update_post(db, post_id, post_in.body)


@router.delete("/{post_id}", response_model=schemas.DeletedPostOut)
def delete_post(post_id: int, db: Session = Depends(get_db)):
    post = crud.delete_post(db, post_id)
    return schemas.DeletedPostOut(message="Deleted", post=post)


@router.delete("", response_model=schemas.MessageOut)
def delete_all_posts(db: Session = Depends(get_db)):
    crud.delete_all_posts(db)
    return schemas.MessageOut(message="All posts deleted")
