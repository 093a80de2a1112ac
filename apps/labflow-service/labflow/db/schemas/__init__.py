"""
Domain-split Pydantic schemas with a single aggregator.

Callers use `from labflow.db import schemas` and `schemas.WorkflowCreate`.
"""

from .users import UserBase, UserCreate, UserUpdate, User
from .projects import ProjectBase, ProjectCreate, ProjectUpdate, Project
from .workflows import (
    AssayDependencyEdge,
    WorkflowBase,
    WorkflowCreate,
    WorkflowUpdate,
    Workflow,
    WorkflowGraphUpdate,
    WorkflowGraph,
)
from .assays import (
    AssayMaterial,
    AssayParameter,
    AssayBase,
    AssayCreate,
    AssayUpdate,
    Assay,
    StepBase,
    StepCreate,
    StepUpdate,
    Step,
)
from .user_workflows import (
    UserWorkflowStart,
    UserWorkflowUpdate,
    UserWorkflow,
    StepCalculation,
)
from .pages import HomeResponse, DashboardResponse, AdminSummaryResponse, RunCard, WorkflowCard

__all__ = [
    # Users
    "UserBase",
    "UserCreate",
    "UserUpdate",
    "User",
    # Projects
    "ProjectBase",
    "ProjectCreate",
    "ProjectUpdate",
    "Project",
    # Workflows
    "AssayDependencyEdge",
    "WorkflowBase",
    "WorkflowCreate",
    "WorkflowUpdate",
    "Workflow",
    "WorkflowGraphUpdate",
    "WorkflowGraph",
    # Assays and steps
    "AssayMaterial",
    "AssayParameter",
    "AssayBase",
    "AssayCreate",
    "AssayUpdate",
    "Assay",
    "StepBase",
    "StepCreate",
    "StepUpdate",
    "Step",
    # Progress
    "UserWorkflowStart",
    "UserWorkflowUpdate",
    "UserWorkflow",
    "StepCalculation",
    # Screens
    "HomeResponse",
    "DashboardResponse",
    "WorkflowCard",
    "RunCard",
    "AdminSummaryResponse",
]
