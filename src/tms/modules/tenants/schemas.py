"""Pydantic schemas for tenant operations."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class TenantResponse(BaseModel):
    """Schema for tenant response data."""

    id: UUID
    name: str
    tax_id: str | None = None
    contact_email: str | None = None
    is_active: bool
    status: str

    model_config = ConfigDict(from_attributes=True)
