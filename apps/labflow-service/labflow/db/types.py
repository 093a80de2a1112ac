"""Custom SQLAlchemy types used by the persistence layer."""
from __future__ import annotations

from sqlalchemy.dialects import postgresql
from sqlalchemy.types import JSON


# JSONB on Postgres, plain JSON (TEXT affinity) elsewhere, e.g. SQLite in tests.
JSONDocument = JSON(none_as_null=True).with_variant(
    postgresql.JSONB(none_as_null=True), "postgresql"
)


__all__ = ["JSONDocument"]
