import uuid
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, field_validator

from labflow.utils.vocab import PROJECT_STATUSES, ensure_choice
from ._validators import min_length, not_null, optional_min_length


class ProjectBase(BaseModel):
    title: str
    description: str = ''
    objective: str = ''
    start_date: date | None = None
    status: str = 'active'

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        return min_length(v, 3, "Title")

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v):
        return ensure_choice(v, PROJECT_STATUSES, "status")


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    objective: str | None = None
    start_date: date | None = None
    status: str | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        return optional_min_length(v, 3, "Title")

    @field_validator("description", "objective")
    @classmethod
    def _reject_null(cls, v, info):
        return not_null(v, info.field_name)

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v):
        return ensure_choice(not_null(v, "status"), PROJECT_STATUSES, "status")


class Project(ProjectBase):
    id: uuid.UUID
    owner_user_id: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
