import uuid
from datetime import datetime
from typing import Dict, List
from pydantic import BaseModel, ConfigDict, field_validator

from labflow.utils.vocab import RUN_STATUSES, ensure_choice
from ._validators import not_null

ParameterValue = bool | int | float | str


class UserWorkflowStart(BaseModel):
    workflow_id: uuid.UUID
    project_id: uuid.UUID | None = None
    parameters: Dict[str, ParameterValue] = {}
    notes: str | None = None


class UserWorkflowUpdate(BaseModel):
    current_assay_id: uuid.UUID | None = None
    current_step_id: uuid.UUID | None = None
    parameters: Dict[str, ParameterValue] | None = None
    notes: str | None = None
    status: str | None = None

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v):
        return ensure_choice(not_null(v, "status"), RUN_STATUSES, "status")

    @field_validator("parameters")
    @classmethod
    def _reject_null(cls, v):
        return not_null(v, "parameters")


class UserWorkflow(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID | None = None
    workflow_id: uuid.UUID
    user_id: uuid.UUID
    started_at: datetime
    completed_at: datetime | None = None
    current_assay_id: uuid.UUID | None = None
    current_step_id: uuid.UUID | None = None
    parameters: Dict[str, ParameterValue] = {}
    status: str
    notes: str | None = None
    model_config = ConfigDict(from_attributes=True)


class StepCalculation(BaseModel):
    step_id: uuid.UUID
    formula: str | None = None
    dependencies: List[str] = []
    missing_parameters: List[str] = []
    value: float | None = None
