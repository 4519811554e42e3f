"""Pydantic schemas for user operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tms.core.constants import MAX_NAME_LENGTH


# Length rules for passwords live in the auth backend so that they run
# before hashing; schemas only bound the payload size.
MAX_PASSWORD_PAYLOAD = 1024


class UserBase(BaseModel):
    """Base schema for user data."""

    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class UserCreate(UserBase):
    """Schema for creating a user in the caller's tenant."""

    password: str = Field(..., max_length=MAX_PASSWORD_PAYLOAD)
    profile_id: UUID


class UserUpdate(BaseModel):
    """Schema for an administrator changing a user. Omitted fields are kept."""

    full_name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    profile_id: UUID | None = None
    is_active: bool | None = None


class UserSelfUpdate(BaseModel):
    """Schema for a user changing their own display name."""

    full_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class SetPasswordRequest(BaseModel):
    """Schema for an administrator setting a user's password."""

    password: str = Field(..., max_length=MAX_PASSWORD_PAYLOAD)


class UserResponse(UserBase):
    """Schema for user response data."""

    id: UUID
    tenant_id: UUID
    profile_id: UUID | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    """Schema for listing users."""

    items: list[UserResponse]
    total: int
    page: int
    page_size: int
