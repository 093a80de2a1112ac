"""
Database engine and session management.

Builds the SQLAlchemy engine for the hosted Postgres backend from environment
configuration, falls back to in-memory SQLite under pytest, and exposes the
FastAPI session dependency.
"""
import os
import sys
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

_SQLITE_MEMORY_URL = "sqlite+pysqlite:///:memory:"


def _get_database_url() -> str:
    # If DATABASE_URL is explicitly set, use it
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT", "5432")
    db_name = os.getenv("POSTGRES_DB")

    missing = [
        name
        for name, value in (
            ("POSTGRES_USER", db_user),
            ("POSTGRES_PASSWORD", db_password),
            ("POSTGRES_HOST", db_host),
            ("POSTGRES_DB", db_name),
        )
        if not value
    ]
    if missing:
        if _is_pytest_runtime():
            return _SQLITE_MEMORY_URL
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while a test runs, so module import
    during collection also checks for pytest in ``sys.modules``.
    ``PYTEST_RUNNING=1`` forces the answer.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return "pytest" in sys.modules


# Test override strategy:
# 1. LABFLOW_TEST_DB wins when set.
# 2. TEST_DATABASE_URL (set by e2e fixtures) is used as-is.
# 3. Otherwise under pytest force in-memory sqlite shared through StaticPool.
explicit_test_db = os.getenv("LABFLOW_TEST_DB")
explicit_e2e_db = os.getenv("TEST_DATABASE_URL")

if explicit_test_db:
    DATABASE_URL = explicit_test_db
elif explicit_e2e_db:
    DATABASE_URL = explicit_e2e_db
elif _is_pytest_runtime():
    DATABASE_URL = _SQLITE_MEMORY_URL
else:
    DATABASE_URL = _get_database_url()


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    kwargs = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # Keep one connection so the schema survives across sessions
        kwargs["poolclass"] = StaticPool
    return kwargs


def _create_engine_with_fallback(url: str):
    """Create the engine; under pytest without an explicit DB, fall back to sqlite."""
    try:
        return create_engine(url, **_engine_kwargs(url))
    except OperationalError:
        if _is_pytest_runtime() and not explicit_e2e_db and not explicit_test_db:
            return create_engine(_SQLITE_MEMORY_URL, **_engine_kwargs(_SQLITE_MEMORY_URL))
        raise


engine = _create_engine_with_fallback(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Alembic owns the Postgres schema; sqlite contexts create it lazily.
_SCHEMA_INIT_DONE = False


def _ensure_sqlite_schema():
    global _SCHEMA_INIT_DONE
    if _SCHEMA_INIT_DONE:
        return
    if str(engine.url).startswith("sqlite"):
        from labflow.db import models  # local import to avoid circular import at module load
        models.Base.metadata.create_all(bind=engine)
    _SCHEMA_INIT_DONE = True


def get_db():
    """Dependency to get a database session."""
    _ensure_sqlite_schema()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
