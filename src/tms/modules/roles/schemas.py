"""Pydantic schemas for role operations."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tms.core.constants import MAX_CODE_LENGTH, MAX_MODULE_LENGTH, MAX_NAME_LENGTH


class RoleResponse(BaseModel):
    """A role as shown to administrators. Display only."""

    id: UUID
    code: str
    name: str
    module: str
    sort_order: int
    is_visible: bool
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


class RoleCreate(BaseModel):
    """Schema for creating a tenant role."""

    code: str = Field(..., min_length=1, max_length=MAX_CODE_LENGTH, pattern=r"^[a-z0-9_]+$")
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    module: str = Field(..., min_length=1, max_length=MAX_MODULE_LENGTH)
    action_type: str = Field(..., min_length=1, description="Action type code, e.g. VER")
    sort_order: int = 0
    is_visible: bool = True


class RoleUpdate(BaseModel):
    """Schema for changing a tenant role. The code is fixed once created."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    module: str | None = Field(None, min_length=1, max_length=MAX_MODULE_LENGTH)
    sort_order: int | None = None
    is_visible: bool | None = None
    is_active: bool | None = None


class RoleIdsRequest(BaseModel):
    """A set of role ids to describe."""

    role_ids: list[UUID] = Field(default_factory=list, max_length=500)
