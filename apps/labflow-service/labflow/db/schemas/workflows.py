import uuid
from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict, field_validator

from labflow.utils.vocab import DIFFICULTIES, WORKFLOW_STATUSES, ensure_choice
from ._validators import min_length, not_null, optional_min_length


class AssayDependencyEdge(BaseModel):
    from_assay_id: uuid.UUID
    to_assay_id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class WorkflowBase(BaseModel):
    title: str
    description: str = ''
    hypothesis: str = ''
    category: str = ''
    difficulty: str = 'beginner'
    estimated_total_time: str | None = None
    status: str = 'draft'
    project_id: uuid.UUID | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        return min_length(v, 3, "Title")

    @field_validator("difficulty")
    @classmethod
    def _validate_difficulty(cls, v):
        return ensure_choice(v, DIFFICULTIES, "difficulty")

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v):
        return ensure_choice(v, WORKFLOW_STATUSES, "status")


class WorkflowCreate(WorkflowBase):
    # Graph editor payload: nodes (in canvas order) and the edges wired between them
    assay_ids: List[uuid.UUID] = []
    dependencies: List[AssayDependencyEdge] = []


class WorkflowUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    hypothesis: str | None = None
    category: str | None = None
    difficulty: str | None = None
    estimated_total_time: str | None = None
    status: str | None = None
    project_id: uuid.UUID | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        return optional_min_length(v, 3, "Title")

    @field_validator("description", "hypothesis", "category")
    @classmethod
    def _reject_null(cls, v, info):
        return not_null(v, info.field_name)

    @field_validator("difficulty")
    @classmethod
    def _validate_difficulty(cls, v):
        return ensure_choice(not_null(v, "difficulty"), DIFFICULTIES, "difficulty")

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v):
        return ensure_choice(not_null(v, "status"), WORKFLOW_STATUSES, "status")


class Workflow(WorkflowBase):
    id: uuid.UUID
    owner_user_id: uuid.UUID | None = None
    assay_ids: List[uuid.UUID] = []
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class WorkflowGraphUpdate(BaseModel):
    assay_ids: List[uuid.UUID]
    dependencies: List[AssayDependencyEdge] = []


class WorkflowGraph(BaseModel):
    workflow_id: uuid.UUID
    assay_ids: List[uuid.UUID]
    dependencies: List[AssayDependencyEdge]
    execution_order: List[uuid.UUID]
    total_minutes: int
    total_time: str
