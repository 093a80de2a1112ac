import uuid
from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from labflow.utils.vocab import PARAMETER_TYPES, CHOICE_PARAMETER_TYPES, ensure_choice
from ._validators import min_length, not_null, optional_min_length


class AssayMaterial(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    quantity: str
    unit: str
    affiliate_link: str | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v):
        return min_length(v, 1, "Material name")

    @field_validator("quantity")
    @classmethod
    def _validate_quantity(cls, v):
        return min_length(v, 1, "Quantity")

    @field_validator("unit")
    @classmethod
    def _validate_unit(cls, v):
        return min_length(v, 1, "Unit")


class AssayParameter(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    description: str
    type: str = 'text'
    required: bool = False
    options: List[str] | None = None
    default_value: bool | int | float | str | None = None
    unit: str | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v):
        return min_length(v, 1, "Parameter name")

    @field_validator("description")
    @classmethod
    def _validate_description(cls, v):
        return min_length(v, 1, "Description")

    @field_validator("type")
    @classmethod
    def _validate_type(cls, v):
        return ensure_choice(v, PARAMETER_TYPES, "type")

    @model_validator(mode="after")
    def _check_consistency(self):
        if self.type in CHOICE_PARAMETER_TYPES and not self.options:
            raise ValueError(f"{self.type} parameters require at least one option")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("min must not exceed max")
        return self


class AssayBase(BaseModel):
    title: str
    description: str
    protocol: str
    materials: List[AssayMaterial] = []
    parameters: List[AssayParameter] = []
    estimated_time: str

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        return min_length(v, 3, "Title")

    @field_validator("description")
    @classmethod
    def _validate_description(cls, v):
        return min_length(v, 10, "Description")

    @field_validator("protocol")
    @classmethod
    def _validate_protocol(cls, v):
        return min_length(v, 10, "Protocol")

    @field_validator("estimated_time")
    @classmethod
    def _validate_estimated_time(cls, v):
        return min_length(v, 1, "Estimated time")


class AssayCreate(AssayBase):
    # Optional workflow to append the new assay to
    workflow_id: uuid.UUID | None = None


class AssayUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    protocol: str | None = None
    materials: List[AssayMaterial] | None = None
    parameters: List[AssayParameter] | None = None
    estimated_time: str | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        return optional_min_length(v, 3, "Title")

    @field_validator("description")
    @classmethod
    def _validate_description(cls, v):
        return optional_min_length(v, 10, "Description")

    @field_validator("protocol")
    @classmethod
    def _validate_protocol(cls, v):
        return optional_min_length(v, 10, "Protocol")

    @field_validator("materials", "parameters")
    @classmethod
    def _reject_null(cls, v, info):
        return not_null(v, info.field_name)


class Assay(AssayBase):
    id: uuid.UUID
    owner_user_id: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class StepBase(BaseModel):
    title: str
    description: str = ''
    estimated_time: str = ''
    warning: str | None = None
    notes: str | None = None
    order_index: int = 0
    calculation_dependencies: List[str] | None = None
    calculation_formula: str | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        return min_length(v, 1, "Title")


class StepCreate(StepBase):
    pass


class StepUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    estimated_time: str | None = None
    warning: str | None = None
    notes: str | None = None
    order_index: int | None = None
    calculation_dependencies: List[str] | None = None
    calculation_formula: str | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        return optional_min_length(v, 1, "Title")

    @field_validator("description", "estimated_time", "order_index")
    @classmethod
    def _reject_null(cls, v, info):
        return not_null(v, info.field_name)


class Step(StepBase):
    id: uuid.UUID
    assay_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
