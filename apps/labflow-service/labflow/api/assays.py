"""
Assays and steps API endpoints.

Assays are reusable templates; reading them is open, while authoring (and
step authoring beneath them) is reserved for admins.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from labflow.db import schemas
from labflow.db.database import get_db
from labflow.db.repositories import assays as assay_repo
from labflow.db.repositories import workflows as workflow_repo
from labflow.api.deps import get_optional_user_context, require_admin
from labflow.api.permissions import can_view_workflow
from labflow.utils.vocab import WORKFLOW_PUBLISHED

router = APIRouter(prefix="/assays", tags=["assays"])
steps_router = APIRouter(prefix="/steps", tags=["steps"])


def _assay_or_404(db: Session, assay_id: uuid.UUID):
    db_assay = assay_repo.get_assay(db, assay_id)
    if not db_assay:
        raise HTTPException(status_code=404, detail="Assay not found")
    return db_assay


@router.post("/", response_model=schemas.Assay, status_code=status.HTTP_201_CREATED)
def create_assay_endpoint(
    assay: schemas.AssayCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    u, _current_user = user_context
    if assay.workflow_id is not None and not workflow_repo.get_workflow(db, assay.workflow_id):
        raise HTTPException(status_code=422, detail="Workflow does not exist")
    created = assay_repo.create_assay(db, assay, owner_user_id=u.id)
    if assay.workflow_id is not None:
        workflow_repo.append_assay(db, assay.workflow_id, created.id)
    return created


@router.get("/", response_model=List[schemas.Assay])
def list_assays_endpoint(
    skip: int = 0,
    limit: int = 100,
    workflow_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_optional_user_context),
):
    if workflow_id is not None:
        if not can_view_workflow(workflow_repo.get_workflow(db, workflow_id), current_user):
            raise HTTPException(status_code=404, detail="Workflow not found")
    return assay_repo.get_assays(db, skip=skip, limit=limit, workflow_id=workflow_id, search=search)


@router.get("/{assay_id}", response_model=schemas.Assay)
def get_assay_endpoint(assay_id: uuid.UUID, db: Session = Depends(get_db)):
    return _assay_or_404(db, assay_id)


@router.put("/{assay_id}", response_model=schemas.Assay)
def update_assay_endpoint(
    assay_id: uuid.UUID,
    assay: schemas.AssayUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    db_assay = assay_repo.update_assay(db, assay_id, assay)
    if not db_assay:
        raise HTTPException(status_code=404, detail="Assay not found")
    return db_assay


@router.delete("/{assay_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assay_endpoint(
    assay_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    stranded = [
        w.title
        for w in workflow_repo.get_workflows_using_assay(db, assay_id, status=WORKFLOW_PUBLISHED)
        if len(w.assay_ids) == 1
    ]
    if stranded:
        raise HTTPException(
            status_code=409,
            detail=f"Assay is the only one in published workflows: {', '.join(sorted(stranded))}",
        )
    if not assay_repo.delete_assay(db, assay_id):
        raise HTTPException(status_code=404, detail="Assay not found")
    return None


@router.post("/{assay_id}/steps/", response_model=schemas.Step, status_code=status.HTTP_201_CREATED)
def create_step_endpoint(
    assay_id: uuid.UUID,
    step: schemas.StepCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    _assay_or_404(db, assay_id)
    return assay_repo.create_step(db, assay_id, step)


@router.get("/{assay_id}/steps/", response_model=List[schemas.Step])
def list_steps_endpoint(assay_id: uuid.UUID, db: Session = Depends(get_db)):
    _assay_or_404(db, assay_id)
    return assay_repo.get_steps_by_assay(db, assay_id)


@steps_router.get("/{step_id}", response_model=schemas.Step)
def get_step_endpoint(step_id: uuid.UUID, db: Session = Depends(get_db)):
    db_step = assay_repo.get_step(db, step_id)
    if not db_step:
        raise HTTPException(status_code=404, detail="Step not found")
    return db_step


@steps_router.put("/{step_id}", response_model=schemas.Step)
def update_step_endpoint(
    step_id: uuid.UUID,
    step: schemas.StepUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    db_step = assay_repo.update_step(db, step_id, step)
    if not db_step:
        raise HTTPException(status_code=404, detail="Step not found")
    return db_step


@steps_router.delete("/{step_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_step_endpoint(
    step_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not assay_repo.delete_step(db, step_id):
        raise HTTPException(status_code=404, detail="Step not found")
    return None
