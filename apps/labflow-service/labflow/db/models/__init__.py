"""
Domain-split SQLAlchemy models with a single aggregator.

Exposes `Base`, `now_utc`, and all ORM classes so callers can use
`from labflow.db import models` and `models.Workflow`.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .users import User
from .projects import Project
from .workflows import Workflow, WorkflowAssay, AssayDependency
from .assays import Assay, Step
from .user_workflows import UserWorkflow

__all__ = [
    # base
    "Base",
    "now_utc",
    # users/projects
    "User",
    "Project",
    # catalog
    "Workflow",
    "WorkflowAssay",
    "AssayDependency",
    "Assay",
    "Step",
    # progress
    "UserWorkflow",
]
