"""
FastAPI app assembly: middleware and router wiring.
Includes the identity and health endpoints that span resource modules.
"""
import logging
import os
from typing import Optional

from fastapi import FastAPI, Header, Depends, status, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from sqlalchemy.orm import Session

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from labflow.db.database import get_db
from labflow.api.auth import build_user_context, get_or_create_user
from labflow.api.deps import resolve_request_identity
from labflow.api.assays import router as assays_router, steps_router
from labflow.api.pages import router as pages_router
from labflow.api.projects import router as projects_router
from labflow.api.support import router as support_router
from labflow.api.user_workflows import router as user_workflows_router
from labflow.api.users import router as users_router
from labflow.api.workflows import router as workflows_router
from labflow.utils.feature_flags import get_feature_flags
from labflow.utils.runtime import dev_mode_active

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="Labflow Service",
    description="API for browsing lab workflows, authoring assays and tracking workflow runs.",
    version="1.0.0",
)

app.router.redirect_slashes = False

origins = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost,http://localhost:3000,http://localhost:8000").split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _guest_writes_allowed() -> bool:
    try:
        return dev_mode_active()
    except RuntimeError:
        # Route dependencies report the misconfiguration
        return False


# Middleware: enforce read-only for unauthenticated requests
@app.middleware("http")
async def enforce_readonly_for_guests(request: Request, call_next):
    if request.method in ("POST", "PUT", "PATCH", "DELETE") and not _guest_writes_allowed():
        h = request.headers
        user_present = (
            h.get("x-auth-request-user")
            or h.get("x-auth-request-email")
            or h.get("x-forwarded-user")
            or h.get("x-forwarded-email")
        )
        if not user_present:
            return JSONResponse(
                {"detail": "Guest mode is read-only. Sign in to perform changes."},
                status_code=status.HTTP_401_UNAUTHORIZED,
            )
    return await call_next(request)


router = APIRouter()


@router.get("/user-info")
def get_user_info(
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    """
    Return authenticated user info.
    - Dev mode (DEV_MODE=true): returns a stable dev user and ensures it exists.
    - Normal mode: reads headers set by oauth2-proxy and upserts the user.
    """
    flags = get_feature_flags()
    name, email = resolve_request_identity(
        x_auth_request_user, x_auth_request_email, x_forwarded_user, x_forwarded_email
    )
    if not email:
        return {"authenticated": False, **flags}

    user = get_or_create_user(db, email=email, display_name=name)
    ctx = build_user_context(user)
    return {
        "authenticated": True,
        "user_id": str(user.id),
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role,
        "is_admin": ctx["is_admin"],
        **flags,
    }


app.include_router(router)
app.include_router(users_router)
app.include_router(projects_router)
app.include_router(workflows_router)
app.include_router(assays_router)
app.include_router(steps_router)
app.include_router(user_workflows_router)
app.include_router(pages_router)
app.include_router(support_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "labflow-service"}
