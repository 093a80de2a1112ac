"""
User repository functions.
"""
from __future__ import annotations

from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from labflow.db import models
from labflow.utils.vocab import ROLE_USER


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, *, email: str, display_name: Optional[str] = None, role: str = ROLE_USER):
    user = models.User(email=email, display_name=display_name or email.split("@")[0], role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def count_users(db: Session) -> int:
    return db.query(func.count(models.User.id)).scalar() or 0
