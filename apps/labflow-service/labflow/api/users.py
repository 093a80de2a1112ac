"""
Users API endpoints.

Exposes the caller's profile and a self-service display name update.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from labflow.db import schemas
from labflow.db.database import get_db
from labflow.api.deps import get_current_user_context

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=schemas.User)
def read_me(user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return user


@router.patch("/me", response_model=schemas.User)
def update_me(
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if payload.display_name is not None:
        user.display_name = payload.display_name
        db.commit()
        db.refresh(user)
    return user
