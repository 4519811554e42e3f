"""Pydantic schemas for profile operations."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tms.core.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from tms.modules.roles.schemas import RoleResponse


class ProfileCreate(BaseModel):
    """Schema for creating a profile in the caller's tenant."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class ProfileUpdate(BaseModel):
    """Schema for changing a profile. Omitted fields are kept."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    is_active: bool | None = None


class ProfileResponse(BaseModel):
    """Schema for profile response data."""

    id: UUID
    name: str
    description: str | None = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ProfileDetailResponse(ProfileResponse):
    """A profile with the active roles it grants."""

    roles: list[RoleResponse] = Field(default_factory=list)


class AssignRolesRequest(BaseModel):
    """The complete role set a profile should have."""

    role_ids: list[UUID] = Field(default_factory=list, max_length=500)


class ProfileRolesResponse(BaseModel):
    """A profile with the ids of its roles."""

    profile_id: UUID
    role_ids: list[UUID]


class AvailableRoleResponse(RoleResponse):
    """A role with whether the profile already holds it."""

    assigned: bool = False
