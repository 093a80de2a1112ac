"""
Workflow repository functions.

Implements workflow CRUD, catalog filtering, and replacement of the assay
graph (membership + dependencies) attached to a workflow.
"""
from __future__ import annotations

import uuid
from typing import Iterable, List, Optional, Sequence, Tuple
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from labflow.db import models, schemas
from labflow.utils.vocab import WORKFLOW_PUBLISHED


def _catalog_query(
    db: Session,
    *,
    include_unpublished: bool = False,
    project_id: Optional[uuid.UUID] = None,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
):
    q = db.query(models.Workflow)
    if not include_unpublished:
        q = q.filter(models.Workflow.status == WORKFLOW_PUBLISHED)
    elif status:
        q = q.filter(models.Workflow.status == status)
    if project_id is not None:
        q = q.filter(models.Workflow.project_id == project_id)
    if category:
        q = q.filter(func.lower(models.Workflow.category) == category.strip().lower())
    if difficulty:
        q = q.filter(models.Workflow.difficulty == difficulty.strip().lower())
    if search:
        pattern = f"%{search.strip().lower()}%"
        q = q.filter(
            or_(
                func.lower(models.Workflow.title).like(pattern),
                func.lower(models.Workflow.description).like(pattern),
            )
        )
    return q


def get_workflows(db: Session, skip: int = 0, limit: int = 100, **filters):
    q = _catalog_query(db, **filters)
    return q.order_by(models.Workflow.created_at.desc()).offset(skip).limit(limit).all()


def count_workflows(db: Session, **filters) -> int:
    return _catalog_query(db, **filters).count()


def get_categories(db: Session, *, include_unpublished: bool = False) -> List[str]:
    q = db.query(models.Workflow.category).filter(models.Workflow.category != '')
    if not include_unpublished:
        q = q.filter(models.Workflow.status == WORKFLOW_PUBLISHED)
    return sorted({row[0] for row in q.distinct().all()})


def get_workflow(db: Session, workflow_id: uuid.UUID):
    return db.query(models.Workflow).filter(models.Workflow.id == workflow_id).first()


def get_workflows_using_assay(db: Session, assay_id: uuid.UUID, *, status: Optional[str] = None):
    q = (
        db.query(models.Workflow)
        .join(models.WorkflowAssay, models.WorkflowAssay.workflow_id == models.Workflow.id)
        .filter(models.WorkflowAssay.assay_id == assay_id)
    )
    if status:
        q = q.filter(models.Workflow.status == status)
    return q.all()


def _apply_graph(
    db: Session,
    workflow: models.Workflow,
    assay_ids: Sequence[uuid.UUID],
    dependencies: Iterable[Tuple[uuid.UUID, uuid.UUID]],
):
    workflow.workflow_assays.clear()
    workflow.dependencies.clear()
    db.flush()
    for position, assay_id in enumerate(assay_ids):
        workflow.workflow_assays.append(models.WorkflowAssay(assay_id=assay_id, position=position))
    for from_id, to_id in dependencies:
        workflow.dependencies.append(models.AssayDependency(from_assay_id=from_id, to_assay_id=to_id))


def create_workflow(
    db: Session,
    workflow: schemas.WorkflowCreate,
    *,
    owner_user_id: Optional[uuid.UUID] = None,
    dependencies: Iterable[Tuple[uuid.UUID, uuid.UUID]] = (),
):
    data = workflow.model_dump(exclude={"assay_ids", "dependencies"})
    db_workflow = models.Workflow(**data, owner_user_id=owner_user_id)
    db.add(db_workflow)
    _apply_graph(db, db_workflow, workflow.assay_ids, dependencies)
    db.commit()
    db.refresh(db_workflow)
    return db_workflow


def update_workflow(db: Session, workflow_id: uuid.UUID, workflow: schemas.WorkflowUpdate):
    db_workflow = get_workflow(db, workflow_id)
    if db_workflow:
        for key, value in workflow.model_dump(exclude_unset=True).items():
            setattr(db_workflow, key, value)
        db.commit()
        db.refresh(db_workflow)
    return db_workflow


def replace_graph(
    db: Session,
    workflow_id: uuid.UUID,
    assay_ids: Sequence[uuid.UUID],
    dependencies: Iterable[Tuple[uuid.UUID, uuid.UUID]],
):
    db_workflow = get_workflow(db, workflow_id)
    if db_workflow:
        _apply_graph(db, db_workflow, assay_ids, dependencies)
        db_workflow.updated_at = models.now_utc()
        db.commit()
        db.refresh(db_workflow)
    return db_workflow


def append_assay(db: Session, workflow_id: uuid.UUID, assay_id: uuid.UUID):
    """Attach an assay at the end of the workflow's canvas order."""
    db_workflow = get_workflow(db, workflow_id)
    if db_workflow and assay_id not in db_workflow.assay_ids:
        db_workflow.workflow_assays.append(
            models.WorkflowAssay(assay_id=assay_id, position=len(db_workflow.workflow_assays))
        )
        db.commit()
        db.refresh(db_workflow)
    return db_workflow


def get_dependencies(db: Session, workflow_id: uuid.UUID) -> List[models.AssayDependency]:
    return (
        db.query(models.AssayDependency)
        .filter(models.AssayDependency.workflow_id == workflow_id)
        .all()
    )


def delete_workflow(db: Session, workflow_id: uuid.UUID) -> bool:
    """Delete a workflow, its graph, and the runs recorded against it."""
    try:
        db_workflow = get_workflow(db, workflow_id)
        if not db_workflow:
            return False
        db.query(models.UserWorkflow).filter(
            models.UserWorkflow.workflow_id == workflow_id
        ).delete(synchronize_session=False)
        db.delete(db_workflow)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete workflow {workflow_id}: {str(e)}")
