"""
Workflows API endpoints.

Catalog browsing for everyone (published workflows only unless admin),
authoring for admins, and the assay dependency graph editor.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from labflow.db import schemas
from labflow.db.database import get_db
from labflow.db.repositories import assays as assay_repo
from labflow.db.repositories import projects as project_repo
from labflow.db.repositories import workflows as workflow_repo
from labflow.api.deps import get_optional_user_context, require_admin
from labflow.api.permissions import can_view_workflow, is_admin
from labflow.services.dependency_graph import DependencyGraphError, execution_order, validate_dependencies
from labflow.utils.feature_flags import graph_editor_enabled
from labflow.utils.formatting import format_duration, total_duration
from labflow.utils.vocab import WORKFLOW_PUBLISHED

router = APIRouter(prefix="/workflows", tags=["workflows"])


def _visible_workflow_or_404(db: Session, workflow_id: uuid.UUID, current_user):
    db_workflow = workflow_repo.get_workflow(db, workflow_id)
    # Hidden workflows are reported as missing so drafts do not leak
    if not can_view_workflow(db_workflow, current_user):
        raise HTTPException(status_code=404, detail="Workflow not found")
    return db_workflow


def _checked_graph(db: Session, assay_ids, dependencies):
    """Validate graph membership and edges, returning normalized edge pairs."""
    if len(assay_repo.get_assays_by_ids(db, list(set(assay_ids)))) != len(set(assay_ids)):
        raise HTTPException(status_code=422, detail="One or more assays do not exist")
    try:
        return validate_dependencies(assay_ids, dependencies)
    except DependencyGraphError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _check_project(db: Session, project_id: Optional[uuid.UUID]):
    if project_id is not None and not project_repo.get_project(db, project_id):
        raise HTTPException(status_code=422, detail="Project does not exist")


def _check_publishable(status_value: Optional[str], assay_ids):
    if status_value == WORKFLOW_PUBLISHED and not assay_ids:
        raise HTTPException(status_code=409, detail="Cannot publish a workflow without assays")


def _graph_response(db: Session, db_workflow) -> schemas.WorkflowGraph:
    edges = workflow_repo.get_dependencies(db, db_workflow.id)
    order = execution_order(db_workflow.assay_ids, edges)
    assays = assay_repo.get_assays_by_ids(db, db_workflow.assay_ids)
    total_minutes = total_duration(a.estimated_time for a in assays)
    return schemas.WorkflowGraph(
        workflow_id=db_workflow.id,
        assay_ids=db_workflow.assay_ids,
        dependencies=[schemas.AssayDependencyEdge.model_validate(e) for e in edges],
        execution_order=order,
        total_minutes=total_minutes,
        total_time=format_duration(total_minutes),
    )


@router.post("/", response_model=schemas.Workflow, status_code=status.HTTP_201_CREATED)
def create_workflow_endpoint(
    workflow: schemas.WorkflowCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    u, _current_user = user_context
    _check_project(db, workflow.project_id)
    _check_publishable(workflow.status, workflow.assay_ids)
    pairs = _checked_graph(db, workflow.assay_ids, workflow.dependencies)
    return workflow_repo.create_workflow(db, workflow, owner_user_id=u.id, dependencies=pairs)


@router.get("/", response_model=List[schemas.Workflow])
def list_workflows_endpoint(
    skip: int = 0,
    limit: int = 100,
    project_id: Optional[uuid.UUID] = None,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_optional_user_context),
):
    return workflow_repo.get_workflows(
        db,
        skip=skip,
        limit=limit,
        include_unpublished=is_admin(current_user),
        project_id=project_id,
        category=category,
        difficulty=difficulty,
        status=status_filter,
        search=search,
    )


@router.get("/{workflow_id}", response_model=schemas.Workflow)
def get_workflow_endpoint(
    workflow_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user=Depends(get_optional_user_context),
):
    return _visible_workflow_or_404(db, workflow_id, current_user)


@router.put("/{workflow_id}", response_model=schemas.Workflow)
def update_workflow_endpoint(
    workflow_id: uuid.UUID,
    workflow: schemas.WorkflowUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    db_workflow = workflow_repo.get_workflow(db, workflow_id)
    if not db_workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    if "project_id" in workflow.model_fields_set:
        _check_project(db, workflow.project_id)
    if "status" in workflow.model_fields_set:
        _check_publishable(workflow.status, db_workflow.assay_ids)
    return workflow_repo.update_workflow(db, workflow_id, workflow)


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workflow_endpoint(
    workflow_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not workflow_repo.delete_workflow(db, workflow_id):
        raise HTTPException(status_code=404, detail="Workflow not found")
    return None


@router.get("/{workflow_id}/graph", response_model=schemas.WorkflowGraph)
def get_workflow_graph_endpoint(
    workflow_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user=Depends(get_optional_user_context),
):
    db_workflow = _visible_workflow_or_404(db, workflow_id, current_user)
    return _graph_response(db, db_workflow)


@router.put("/{workflow_id}/graph", response_model=schemas.WorkflowGraph)
def replace_workflow_graph_endpoint(
    workflow_id: uuid.UUID,
    graph: schemas.WorkflowGraphUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not graph_editor_enabled():
        raise HTTPException(status_code=503, detail="Graph editor is disabled")
    db_workflow = workflow_repo.get_workflow(db, workflow_id)
    if not db_workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    _check_publishable(db_workflow.status, graph.assay_ids)
    pairs = _checked_graph(db, graph.assay_ids, graph.dependencies)
    db_workflow = workflow_repo.replace_graph(db, workflow_id, graph.assay_ids, pairs)
    return _graph_response(db, db_workflow)


@router.post("/{workflow_id}/publish", response_model=schemas.Workflow)
def publish_workflow_endpoint(
    workflow_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    db_workflow = workflow_repo.get_workflow(db, workflow_id)
    if not db_workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    _check_publishable(WORKFLOW_PUBLISHED, db_workflow.assay_ids)
    return workflow_repo.update_workflow(db, workflow_id, schemas.WorkflowUpdate(status=WORKFLOW_PUBLISHED))
