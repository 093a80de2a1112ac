import os
import pytest
from contextvars import ContextVar

# Force the in-memory sqlite engine before labflow.db.database is imported
os.environ.setdefault("PYTEST_RUNNING", "1")

from fastapi.testclient import TestClient

import labflow.db.database as db_module
from labflow.db import models
from labflow.api.main import app
from labflow.utils.feature_flags import refresh_feature_flag_cache

ADMIN_EMAIL = "admin@example.com"
USER_EMAIL = "researcher@example.com"


@pytest.fixture(autouse=True)
def _identity_env(monkeypatch):
    """Pin admin elevation and keep dev-mode impersonation off."""
    monkeypatch.setenv("ADMIN_EMAILS", ADMIN_EMAIL)
    monkeypatch.delenv("DEV_MODE", raising=False)
    for name in (
        "FEATURE_PROGRESS_TRACKING_ENABLED",
        "FEATURE_FORMULA_EVALUATION_ENABLED",
        "FEATURE_GRAPH_EDITOR_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


@pytest.fixture(scope="session")
def _engine():
    engine = db_module.engine
    models.Base.metadata.create_all(bind=engine)
    return engine


_current_session: ContextVar[object] = ContextVar("_current_session", default=None)
# Fallback for threadpool contexts where ContextVar may not propagate
_GLOBAL_SESSION = None


# Per-test session; sqlite savepoints are unreliable under pysqlite so tables are cleared afterwards
@pytest.fixture
def db_session(_engine):
    global _GLOBAL_SESSION
    session = db_module.SessionLocal(bind=_engine)
    token = _current_session.set(session)
    _GLOBAL_SESSION = session
    try:
        yield session
    finally:
        _current_session.reset(token)
        _GLOBAL_SESSION = None
        session.rollback()
        session.close()
        with _engine.begin() as conn:
            for table in reversed(models.Base.metadata.sorted_tables):
                conn.execute(table.delete())


def _override_get_db():
    session = _current_session.get()
    if session is not None:
        yield session
        return
    if _GLOBAL_SESSION is not None:
        yield _GLOBAL_SESSION
        return
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()


app.dependency_overrides[db_module.get_db] = _override_get_db


# Backwards compatibility: some tests expect a 'db' fixture name
@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client(db_session):
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"x-auth-request-email": ADMIN_EMAIL, "x-auth-request-user": "Admin"}


@pytest.fixture
def user_headers():
    return {"x-auth-request-email": USER_EMAIL, "x-auth-request-user": "Researcher"}
