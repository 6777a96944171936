from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.user import UserRole
from app.schemas.task import Pagination


class UserRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCreate(UserRequest):
    full_name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    role: UserRole

    @field_validator('full_name', 'username')
    @classmethod
    def strip(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Please provide all required fields')
        return v


class UserLogin(BaseModel):
    username: str
    password: str


class UserUpdate(UserRequest):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[UserRole] = None

    @field_validator('full_name', 'username')
    @classmethod
    def strip(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('Name and username cannot be blank')
        return v


class UserRoleUpdate(UserRequest):
    role: UserRole


class UserPasswordUpdate(UserRequest):
    new_password: str = Field(..., min_length=6)


class UserOut(BaseModel):
    id: int
    full_name: str
    username: str
    role: UserRole
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserListOut(BaseModel):
    users: List[UserOut]
    pagination: Pagination
