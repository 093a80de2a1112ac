import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator


class UserBase(BaseModel):
    email: str
    display_name: str | None = None


class UserCreate(UserBase):
    pass


class UserUpdate(BaseModel):
    display_name: str | None = None

    @field_validator("display_name")
    @classmethod
    def _validate_display_name(cls, v):
        if v is None:
            return v
        s = v.strip()
        if len(s) == 0 or len(s) > 80:
            raise ValueError("display_name must be 1..80 characters")
        return s


class User(UserBase):
    id: uuid.UUID
    role: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
