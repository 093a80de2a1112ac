"""
API dependency helpers.

Provides dependency-resolved user context for routes. The context is a plain
dict (``id``, ``email``, ``display_name``, ``role``, ``is_admin``) so
permission helpers stay independent of the ORM.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from labflow.api.auth import build_user_context, get_or_create_user, resolve_identity_from_headers
from labflow.db.database import get_db
from labflow.utils.runtime import dev_identity

logger = logging.getLogger(__name__)


def resolve_request_identity(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    """(name, email) of the caller: the dev user in dev mode, proxy headers otherwise."""
    try:
        dev_user = dev_identity()
    except RuntimeError as exc:
        logger.error("DEV_MODE misconfiguration detected: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="DEV_MODE misconfigured")
    if dev_user:
        return dev_user
    return resolve_identity_from_headers(
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )


# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved.
def get_current_user_context(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[Any, Dict[str, Any]]:
    name, email = resolve_request_identity(x_auth_request_user, x_auth_request_email, x_forwarded_user, x_forwarded_email)
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = get_or_create_user(db, email=email, display_name=name)
    return user, build_user_context(user)


def get_optional_user_context(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Optional[Dict[str, Any]]:
    """Return the caller's context, or None for guests browsing the catalog."""
    name, email = resolve_request_identity(x_auth_request_user, x_auth_request_email, x_forwarded_user, x_forwarded_email)
    if not email:
        return None
    return build_user_context(get_or_create_user(db, email=email, display_name=name))


def require_admin(user_context=Depends(get_current_user_context)) -> Tuple[Any, Dict[str, Any]]:
    _user, current_user = user_context
    if not current_user.get("is_admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return user_context
