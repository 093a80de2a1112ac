"""
Authentication helpers and identity resolution.

Parses reverse-proxy identity headers, normalizes emails, and upserts users
while supporting admin elevation via the ADMIN_EMAILS environment variable.
"""
import os
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from labflow.db import models
from labflow.db.repositories import users as user_repo
from labflow.utils.vocab import ROLE_ADMIN, ROLE_USER


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


def _normalize_list_env(var_name: str) -> set:
    raw = os.getenv(var_name, "")
    values = set()
    for entry in raw.split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def _admin_emails() -> set:
    return _normalize_list_env("ADMIN_EMAILS")


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    user = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return user, email


def get_or_create_user(db: Session, email: str, display_name: Optional[str] = None) -> models.User:
    email = _normalize_email(email)
    user = user_repo.get_user_by_email(db, email)
    is_admin_email = email in _admin_emails()
    if not user:
        return user_repo.create_user(
            db,
            email=email,
            display_name=display_name,
            role=ROLE_ADMIN if is_admin_email else ROLE_USER,
        )
    # Existing users might predate a new ADMIN_EMAILS value; promote them when necessary.
    if is_admin_email and user.role != ROLE_ADMIN:
        user.role = ROLE_ADMIN
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(user)
    return user


def build_user_context(user: models.User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role,
        "is_admin": user.role == ROLE_ADMIN,
    }
