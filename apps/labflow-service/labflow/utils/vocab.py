"""
Controlled vocabularies for catalog and progress records.

Central definitions so status/difficulty literals are not scattered across
routers, repositories and the store.
"""

from typing import FrozenSet

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ALL_ROLES: FrozenSet[str] = frozenset({ROLE_ADMIN, ROLE_USER})

PROJECT_ACTIVE = "active"
PROJECT_COMPLETED = "completed"
PROJECT_ARCHIVED = "archived"
PROJECT_STATUSES: FrozenSet[str] = frozenset({PROJECT_ACTIVE, PROJECT_COMPLETED, PROJECT_ARCHIVED})

WORKFLOW_DRAFT = "draft"
WORKFLOW_PUBLISHED = "published"
WORKFLOW_ARCHIVED = "archived"
WORKFLOW_STATUSES: FrozenSet[str] = frozenset({WORKFLOW_DRAFT, WORKFLOW_PUBLISHED, WORKFLOW_ARCHIVED})

DIFFICULTIES: FrozenSet[str] = frozenset({"beginner", "intermediate", "advanced"})

RUN_IN_PROGRESS = "in-progress"
RUN_COMPLETED = "completed"
RUN_ABANDONED = "abandoned"
RUN_STATUSES: FrozenSet[str] = frozenset({RUN_IN_PROGRESS, RUN_COMPLETED, RUN_ABANDONED})

PARAMETER_TYPES: FrozenSet[str] = frozenset({"text", "number", "select", "radio", "checkbox"})
# Parameter types whose value must be one of the declared options
CHOICE_PARAMETER_TYPES: FrozenSet[str] = frozenset({"select", "radio"})


def ensure_choice(value: str, allowed: FrozenSet[str], label: str) -> str:
    """Return the normalized value or raise ValueError naming the allowed set."""
    normalized = (value or "").strip().lower()
    if normalized not in allowed:
        raise ValueError(f"{label} must be one of: {', '.join(sorted(allowed))}")
    return normalized
