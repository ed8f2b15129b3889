# sourcing/schemas/profile.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# Tenant roles. Anonymous callers have no profile row.
Role = Literal["owner", "staff", "client"]
ProfileStatus = Literal["active", "banned"]


class ProfileRead(SQLModel):
    """Response schema for the signed-in profile and staff client lists."""

    id: uuid.UUID
    email: EmailStr
    full_name: str
    phone: str | None
    company_id: uuid.UUID | None
    role: Role
    status: ProfileStatus
    created_at: datetime


class ProfileUpdate(SQLModel):
    """
    Partial self-service profile update.

    Email, role and company membership are not editable here.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=30)

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ClientStatusUpdate(SQLModel):
    """
    Staff-only ban/unban of a client.
    """

    model_config = ConfigDict(extra="forbid")
    status: ProfileStatus
