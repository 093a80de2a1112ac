"""
Projects API endpoints.

Projects group workflows and runs. Anyone signed in can list them; only
admins create, edit or delete.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from labflow.db import schemas
from labflow.db.database import get_db
from labflow.db.repositories import projects as project_repo
from labflow.api.deps import get_current_user_context, require_admin
from labflow.utils.vocab import PROJECT_STATUSES

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("/", response_model=schemas.Project, status_code=status.HTTP_201_CREATED)
def create_project_endpoint(
    project: schemas.ProjectCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    u, _current_user = user_context
    return project_repo.create_project(db, project, owner_user_id=u.id)


@router.get("/", response_model=List[schemas.Project])
def list_projects_endpoint(
    skip: int = 0,
    limit: int = 100,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if status_filter and status_filter not in PROJECT_STATUSES:
        raise HTTPException(status_code=422, detail=f"Unknown project status: {status_filter}")
    return project_repo.get_projects(db, skip=skip, limit=limit, status=status_filter)


@router.get("/{project_id}", response_model=schemas.Project)
def get_project_endpoint(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    db_project = project_repo.get_project(db, project_id)
    if not db_project:
        raise HTTPException(status_code=404, detail="Project not found")
    return db_project


@router.put("/{project_id}", response_model=schemas.Project)
def update_project_endpoint(
    project_id: uuid.UUID,
    project: schemas.ProjectUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    db_project = project_repo.update_project(db, project_id, project)
    if not db_project:
        raise HTTPException(status_code=404, detail="Project not found")
    return db_project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project_endpoint(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not project_repo.delete_project(db, project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    return None
