"""
Assay and step repository functions.

Materials and parameters are stored as JSON documents on the assay row; steps
are ordered rows keyed by ``order_index``.
"""
from __future__ import annotations

import uuid
from typing import Dict, List, Optional, Sequence
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from labflow.db import models, schemas


def _dump_documents(items) -> list:
    return [item.model_dump(mode="json") for item in items or []]


def create_assay(db: Session, assay: schemas.AssayCreate, *, owner_user_id: Optional[uuid.UUID] = None):
    db_assay = models.Assay(
        title=assay.title,
        description=assay.description,
        protocol=assay.protocol,
        materials=_dump_documents(assay.materials),
        parameters=_dump_documents(assay.parameters),
        estimated_time=assay.estimated_time,
        owner_user_id=owner_user_id,
    )
    db.add(db_assay)
    db.commit()
    db.refresh(db_assay)
    return db_assay


def get_assay(db: Session, assay_id: uuid.UUID):
    return db.query(models.Assay).filter(models.Assay.id == assay_id).first()


def get_assays(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    *,
    workflow_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
):
    q = db.query(models.Assay)
    if workflow_id is not None:
        q = q.join(models.WorkflowAssay, models.WorkflowAssay.assay_id == models.Assay.id).filter(
            models.WorkflowAssay.workflow_id == workflow_id
        ).order_by(models.WorkflowAssay.position)
    else:
        q = q.order_by(models.Assay.title)
    if search:
        pattern = f"%{search.strip().lower()}%"
        q = q.filter(
            or_(
                func.lower(models.Assay.title).like(pattern),
                func.lower(models.Assay.description).like(pattern),
            )
        )
    return q.offset(skip).limit(limit).all()


def get_assays_by_ids(db: Session, assay_ids: Sequence[uuid.UUID]) -> List[models.Assay]:
    if not assay_ids:
        return []
    return db.query(models.Assay).filter(models.Assay.id.in_(list(assay_ids))).all()


def count_assays(db: Session) -> int:
    return db.query(models.Assay).count()


def update_assay(db: Session, assay_id: uuid.UUID, assay: schemas.AssayUpdate):
    db_assay = get_assay(db, assay_id)
    if db_assay:
        data = assay.model_dump(exclude_unset=True, exclude={"materials", "parameters"})
        for key, value in data.items():
            setattr(db_assay, key, value)
        if "materials" in assay.model_fields_set:
            db_assay.materials = _dump_documents(assay.materials)
        if "parameters" in assay.model_fields_set:
            db_assay.parameters = _dump_documents(assay.parameters)
        db.commit()
        db.refresh(db_assay)
    return db_assay


def delete_assay(db: Session, assay_id: uuid.UUID) -> bool:
    """Delete an assay with its steps and every workflow link or dependency edge touching it."""
    try:
        db_assay = get_assay(db, assay_id)
        if not db_assay:
            return False
        db.query(models.AssayDependency).filter(
            or_(
                models.AssayDependency.from_assay_id == assay_id,
                models.AssayDependency.to_assay_id == assay_id,
            )
        ).delete(synchronize_session=False)
        step_ids = [s.id for s in db_assay.steps]
        q_runs = db.query(models.UserWorkflow).filter(models.UserWorkflow.current_assay_id == assay_id)
        q_runs.update(
            {models.UserWorkflow.current_assay_id: None, models.UserWorkflow.current_step_id: None},
            synchronize_session=False,
        )
        if step_ids:
            db.query(models.UserWorkflow).filter(models.UserWorkflow.current_step_id.in_(step_ids)).update(
                {models.UserWorkflow.current_step_id: None}, synchronize_session=False
            )
        db.delete(db_assay)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete assay {assay_id}: {str(e)}")


# Steps
def create_step(db: Session, assay_id: uuid.UUID, step: schemas.StepCreate):
    db_step = models.Step(assay_id=assay_id, **step.model_dump())
    db.add(db_step)
    db.commit()
    db.refresh(db_step)
    return db_step


def get_step(db: Session, step_id: uuid.UUID):
    return db.query(models.Step).filter(models.Step.id == step_id).first()


def get_steps_by_assay(db: Session, assay_id: uuid.UUID) -> List[models.Step]:
    return (
        db.query(models.Step)
        .filter(models.Step.assay_id == assay_id)
        .order_by(models.Step.order_index, models.Step.created_at)
        .all()
    )


def get_step_ids_by_assay(db: Session, assay_ids: Sequence[uuid.UUID]) -> Dict[uuid.UUID, List[uuid.UUID]]:
    """Map assay id -> ordered step ids for the given assays."""
    result: Dict[uuid.UUID, List[uuid.UUID]] = {a: [] for a in assay_ids}
    if not assay_ids:
        return result
    rows = (
        db.query(models.Step.assay_id, models.Step.id)
        .filter(models.Step.assay_id.in_(list(assay_ids)))
        .order_by(models.Step.order_index, models.Step.created_at)
        .all()
    )
    for assay_id, step_id in rows:
        result[assay_id].append(step_id)
    return result


def count_steps(db: Session) -> int:
    return db.query(models.Step).count()


def update_step(db: Session, step_id: uuid.UUID, step: schemas.StepUpdate):
    db_step = get_step(db, step_id)
    if db_step:
        for key, value in step.model_dump(exclude_unset=True).items():
            setattr(db_step, key, value)
        db.commit()
        db.refresh(db_step)
    return db_step


def delete_step(db: Session, step_id: uuid.UUID):
    if step_id is None:
        return None
    try:
        db_step = get_step(db, step_id)
        if db_step:
            db.query(models.UserWorkflow).filter(models.UserWorkflow.current_step_id == step_id).update(
                {models.UserWorkflow.current_step_id: None}, synchronize_session=False
            )
            db.delete(db_step)
            db.commit()
        return db_step
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete step {step_id}: {str(e)}")
