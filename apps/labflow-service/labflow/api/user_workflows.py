"""
User workflow (run) API endpoints.

A run records one user's progress through a workflow: the current assay and
step, the parameters they entered, and the run status.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from labflow.db import schemas
from labflow.db.database import get_db
from labflow.db.repositories import assays as assay_repo
from labflow.db.repositories import projects as project_repo
from labflow.db.repositories import user_workflows as run_repo
from labflow.db.repositories import workflows as workflow_repo
from labflow.api.deps import get_current_user_context
from labflow.api.permissions import can_access_run, can_view_workflow, is_admin
from labflow.services.progress import WorkflowStartError
from labflow.services.progress_service import ProgressService, RunStateError
from labflow.utils.feature_flags import formula_evaluation_enabled, progress_tracking_enabled


def require_progress_tracking():
    if not progress_tracking_enabled():
        raise HTTPException(status_code=503, detail="Progress tracking is disabled")


router = APIRouter(
    prefix="/user-workflows",
    tags=["user-workflows"],
    dependencies=[Depends(require_progress_tracking)],
)


def _run_or_404(db: Session, run_id: uuid.UUID, current_user):
    db_run = run_repo.get_user_workflow(db, run_id)
    # Other users' runs are indistinguishable from missing ones
    if not can_access_run(db_run, current_user):
        raise HTTPException(status_code=404, detail="User workflow not found")
    return db_run


def _owned_run_or_403(db: Session, run_id: uuid.UUID, current_user):
    db_run = _run_or_404(db, run_id, current_user)
    if db_run.user_id != current_user.get("id"):
        raise HTTPException(status_code=403, detail="Only the run owner can change it")
    return db_run


@router.post("/", response_model=schemas.UserWorkflow, status_code=status.HTTP_201_CREATED)
def start_user_workflow_endpoint(
    payload: schemas.UserWorkflowStart,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    u, current_user = user_context
    if not can_view_workflow(workflow_repo.get_workflow(db, payload.workflow_id), current_user):
        raise HTTPException(status_code=404, detail="Workflow not found")
    if payload.project_id is not None and not project_repo.get_project(db, payload.project_id):
        raise HTTPException(status_code=422, detail="Project does not exist")
    try:
        return ProgressService(db).start(u.id, payload)
    except WorkflowStartError as e:
        code = 404 if str(e) == "Workflow not found" else 422
        raise HTTPException(status_code=code, detail=str(e))


@router.get("/", response_model=List[schemas.UserWorkflow])
def list_user_workflows_endpoint(
    skip: int = 0,
    limit: int = 100,
    project_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    all_users: bool = False,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    u, current_user = user_context
    if all_users and not is_admin(current_user):
        raise HTTPException(status_code=403, detail="Admin role required")
    return run_repo.get_user_workflows(
        db,
        skip=skip,
        limit=limit,
        user_id=None if all_users else u.id,
        project_id=project_id,
        status=status_filter,
    )


@router.get("/{run_id}", response_model=schemas.UserWorkflow)
def get_user_workflow_endpoint(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _u, current_user = user_context
    return _run_or_404(db, run_id, current_user)


@router.patch("/{run_id}", response_model=schemas.UserWorkflow)
def update_user_workflow_endpoint(
    run_id: uuid.UUID,
    payload: schemas.UserWorkflowUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _u, current_user = user_context
    db_run = _owned_run_or_403(db, run_id, current_user)
    try:
        return ProgressService(db).update(db_run, payload)
    except RunStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


def _transition(db: Session, run_id: uuid.UUID, current_user, action: str):
    db_run = _owned_run_or_403(db, run_id, current_user)
    service = ProgressService(db)
    try:
        return getattr(service, action)(db_run)
    except RunStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{run_id}/advance", response_model=schemas.UserWorkflow)
def advance_user_workflow_endpoint(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _u, current_user = user_context
    return _transition(db, run_id, current_user, "advance")


@router.post("/{run_id}/complete", response_model=schemas.UserWorkflow)
def complete_user_workflow_endpoint(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _u, current_user = user_context
    return _transition(db, run_id, current_user, "complete")


@router.post("/{run_id}/abandon", response_model=schemas.UserWorkflow)
def abandon_user_workflow_endpoint(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _u, current_user = user_context
    return _transition(db, run_id, current_user, "abandon")


@router.get("/{run_id}/steps/{step_id}/calculation", response_model=schemas.StepCalculation)
def step_calculation_endpoint(
    run_id: uuid.UUID,
    step_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not formula_evaluation_enabled():
        raise HTTPException(status_code=503, detail="Formula evaluation is disabled")
    _u, current_user = user_context
    db_run = _run_or_404(db, run_id, current_user)
    db_step = assay_repo.get_step(db, step_id)
    workflow = workflow_repo.get_workflow(db, db_run.workflow_id)
    if not db_step or workflow is None or db_step.assay_id not in workflow.assay_ids:
        raise HTTPException(status_code=404, detail="Step not found in this workflow")
    return ProgressService.calculate(db_step, db_run.parameters)
