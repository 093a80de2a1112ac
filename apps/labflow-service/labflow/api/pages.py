"""
Aggregate screen endpoints.

Each endpoint serves exactly what one screen renders: the public home page,
the signed-in user's dashboard and the admin catalog summary.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from labflow.db import schemas
from labflow.db.database import get_db
from labflow.db.repositories import assays as assay_repo
from labflow.db.repositories import projects as project_repo
from labflow.db.repositories import user_workflows as run_repo
from labflow.db.repositories import users as user_repo
from labflow.db.repositories import workflows as workflow_repo
from labflow.api.deps import get_current_user_context, get_optional_user_context, require_admin
from labflow.api.permissions import is_admin
from labflow.utils.formatting import format_date, truncate_text
from labflow.utils.vocab import RUN_ABANDONED, RUN_COMPLETED, RUN_IN_PROGRESS, WORKFLOW_STATUSES

router = APIRouter(tags=["pages"])

FEATURED_WORKFLOW_COUNT = 6
RECENT_RUN_COUNT = 5
SUMMARY_LENGTH = 120


def _workflow_card(db_workflow) -> schemas.WorkflowCard:
    workflow = schemas.Workflow.model_validate(db_workflow)
    return schemas.WorkflowCard(
        **workflow.model_dump(),
        summary=truncate_text(workflow.description, SUMMARY_LENGTH),
        created_label=format_date(workflow.created_at),
    )


def _run_card(db_run) -> schemas.RunCard:
    run = schemas.UserWorkflow.model_validate(db_run)
    return schemas.RunCard(**run.model_dump(), started_label=format_date(run.started_at))


@router.get("/home", response_model=schemas.HomeResponse)
def home_endpoint(
    db: Session = Depends(get_db),
    current_user=Depends(get_optional_user_context),
):
    include_unpublished = is_admin(current_user)
    return schemas.HomeResponse(
        featured_workflows=[
            _workflow_card(w)
            for w in workflow_repo.get_workflows(db, limit=FEATURED_WORKFLOW_COUNT)
        ],
        workflow_count=workflow_repo.count_workflows(db, include_unpublished=include_unpublished),
        assay_count=assay_repo.count_assays(db),
        categories=workflow_repo.get_categories(db, include_unpublished=include_unpublished),
    )


@router.get("/dashboard", response_model=schemas.DashboardResponse)
def dashboard_endpoint(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    u, _current_user = user_context
    counts = run_repo.count_by_status(db, user_id=u.id)
    return schemas.DashboardResponse(
        active_count=counts.get(RUN_IN_PROGRESS, 0),
        completed_count=counts.get(RUN_COMPLETED, 0),
        abandoned_count=counts.get(RUN_ABANDONED, 0),
        recent=[
            _run_card(r)
            for r in run_repo.get_user_workflows(db, limit=RECENT_RUN_COUNT, user_id=u.id)
        ],
    )


@router.get("/admin/summary", response_model=schemas.AdminSummaryResponse)
def admin_summary_endpoint(
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    by_status = {
        s: workflow_repo.count_workflows(db, include_unpublished=True, status=s)
        for s in sorted(WORKFLOW_STATUSES)
    }
    return schemas.AdminSummaryResponse(
        users=user_repo.count_users(db),
        projects=project_repo.count_projects(db),
        workflows_by_status=by_status,
        assays=assay_repo.count_assays(db),
        steps=assay_repo.count_steps(db),
        user_workflows_by_status=run_repo.count_by_status(db),
    )
