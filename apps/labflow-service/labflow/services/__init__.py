"""Business logic services package with public service helpers."""

from .dependency_graph import (
    DependencyGraphError,
    build_graph,
    execution_order,
    prerequisites,
    validate_dependencies,
)
from .progress import WorkflowStartError, first_position, next_position
from .progress_service import ProgressService, RunStateError

__all__ = [
    "DependencyGraphError",
    "build_graph",
    "execution_order",
    "prerequisites",
    "validate_dependencies",
    "WorkflowStartError",
    "first_position",
    "next_position",
    "ProgressService",
    "RunStateError",
]
