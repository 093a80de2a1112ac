"""Response shapes for the aggregate screens (home, dashboard, admin)."""
from typing import List
from pydantic import BaseModel

from .workflows import Workflow
from .user_workflows import UserWorkflow


class WorkflowCard(Workflow):
    # Description cut for list cards and a display date
    summary: str
    created_label: str


class RunCard(UserWorkflow):
    started_label: str


class HomeResponse(BaseModel):
    featured_workflows: List[WorkflowCard]
    workflow_count: int
    assay_count: int
    categories: List[str]


class DashboardResponse(BaseModel):
    active_count: int
    completed_count: int
    abandoned_count: int
    recent: List[RunCard]


class AdminSummaryResponse(BaseModel):
    users: int
    projects: int
    workflows_by_status: dict
    assays: int
    steps: int
    user_workflows_by_status: dict
