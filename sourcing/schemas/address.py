# sourcing/schemas/address.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel


class AddressUpsert(SQLModel):
    """
    Create (no id) or update (id of an existing address) a delivery address.
    """

    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID | None = None
    full_name: str
    company_name: str | None = None
    address_line_1: str
    address_line_2: str | None = None
    city: str
    country: str
    phone: str | None = None
    is_default: bool = False

    @field_validator("full_name", "address_line_1", "city", "country")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("company_name", "address_line_2", "phone")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class AddressRead(SQLModel):
    id: uuid.UUID
    full_name: str
    company_name: str | None
    address_line_1: str
    address_line_2: str | None
    city: str
    country: str
    phone: str | None
    is_default: bool
    created_at: datetime
