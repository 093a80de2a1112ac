"""
Project repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from labflow.db import models, schemas


def create_project(db: Session, project: schemas.ProjectCreate, *, owner_user_id: Optional[uuid.UUID] = None):
    db_project = models.Project(**project.model_dump(), owner_user_id=owner_user_id)
    db.add(db_project)
    db.commit()
    db.refresh(db_project)
    return db_project


def get_project(db: Session, project_id: uuid.UUID):
    return db.query(models.Project).filter(models.Project.id == project_id).first()


def get_projects(db: Session, skip: int = 0, limit: int = 100, *, status: Optional[str] = None):
    q = db.query(models.Project)
    if status:
        q = q.filter(models.Project.status == status)
    return q.order_by(models.Project.created_at.desc()).offset(skip).limit(limit).all()


def update_project(db: Session, project_id: uuid.UUID, project: schemas.ProjectUpdate):
    db_project = get_project(db, project_id)
    if db_project:
        for key, value in project.model_dump(exclude_unset=True).items():
            setattr(db_project, key, value)
        db.commit()
        db.refresh(db_project)
    return db_project


def delete_project(db: Session, project_id: uuid.UUID) -> bool:
    """Delete a project; workflows and runs keep existing but lose the link."""
    try:
        db_project = get_project(db, project_id)
        if not db_project:
            return False
        db.query(models.Workflow).filter(models.Workflow.project_id == project_id).update(
            {models.Workflow.project_id: None}, synchronize_session=False
        )
        db.query(models.UserWorkflow).filter(models.UserWorkflow.project_id == project_id).update(
            {models.UserWorkflow.project_id: None}, synchronize_session=False
        )
        db.delete(db_project)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete project {project_id}: {str(e)}")


def count_projects(db: Session) -> int:
    return db.query(models.Project).count()
