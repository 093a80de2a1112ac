"""
User workflow (run) repository functions.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from labflow.db import models


def create_user_workflow(db: Session, **fields: Any):
    db_run = models.UserWorkflow(**fields)
    db.add(db_run)
    db.commit()
    db.refresh(db_run)
    return db_run


def get_user_workflow(db: Session, user_workflow_id: uuid.UUID):
    return db.query(models.UserWorkflow).filter(models.UserWorkflow.id == user_workflow_id).first()


def get_user_workflows(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    *,
    user_id: Optional[uuid.UUID] = None,
    project_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
):
    q = db.query(models.UserWorkflow)
    if user_id is not None:
        q = q.filter(models.UserWorkflow.user_id == user_id)
    if project_id is not None:
        q = q.filter(models.UserWorkflow.project_id == project_id)
    if status:
        q = q.filter(models.UserWorkflow.status == status)
    return q.order_by(models.UserWorkflow.started_at.desc()).offset(skip).limit(limit).all()


def count_by_status(db: Session, *, user_id: Optional[uuid.UUID] = None) -> Dict[str, int]:
    q = db.query(models.UserWorkflow.status, func.count(models.UserWorkflow.id))
    if user_id is not None:
        q = q.filter(models.UserWorkflow.user_id == user_id)
    return {status: count for status, count in q.group_by(models.UserWorkflow.status).all()}


def update_user_workflow(db: Session, user_workflow_id: uuid.UUID, data: Dict[str, Any]):
    db_run = get_user_workflow(db, user_workflow_id)
    if db_run:
        for key, value in data.items():
            setattr(db_run, key, value)
        db.commit()
        db.refresh(db_run)
    return db_run
