import os
import shutil

import pytest

from alembic.config import Config


def _service_root() -> str:
    # Path to apps/labflow-service
    here = os.path.dirname(__file__)
    return os.path.abspath(os.path.join(here, "..", ".."))


def _normalize_url(url: str) -> str:
    # postgresql+psycopg2:// -> postgresql:// (driver default used by the app)
    if "+" in url.split("://", 1)[0]:
        scheme, rest = url.split("://", 1)
        url = scheme.split("+", 1)[0] + "://" + rest
    return url


# Session-wide Postgres test container
@pytest.fixture(scope="session")
def postgres_url():
    if os.getenv("SKIP_DOCKER_TESTS") == "1":
        pytest.skip("SKIP_DOCKER_TESTS=1")
    if not shutil.which("docker"):
        pytest.skip("Docker CLI is not available; skipping e2e tests that require containers")
    from testcontainers.postgres import PostgresContainer

    image = os.getenv("TEST_POSTGRES_IMAGE", "postgres:16-alpine")
    container = PostgresContainer(image)
    try:
        container.start()
    except Exception as exc:
        pytest.skip(f"Could not start Postgres container: {exc}")
    try:
        yield _normalize_url(container.get_connection_url())
    finally:
        container.stop()


@pytest.fixture
def alembic_config(postgres_url, monkeypatch):
    """Alembic Config bound to the service's alembic.ini, pointed at the container."""
    monkeypatch.setenv("TEST_DATABASE_URL", postgres_url)
    cfg = Config(os.path.join(_service_root(), "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", postgres_url)
    return cfg
