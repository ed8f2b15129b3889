# sourcing/models/address.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class ClientAddress(SQLModel, table=True):
    """
    Reusable delivery destination owned by a client.

    At most one address per (company_id, user_id) has is_default=True;
    the address service clears the previous default on write.
    """

    __tablename__ = "client_addresses"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    company_id: uuid.UUID = Field(
        foreign_key="companies.id",
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="profiles.id",
        index=True,
    )

    full_name: str
    company_name: str | None = None
    address_line_1: str
    address_line_2: str | None = None
    city: str
    country: str = Field(description="Country code or name")
    phone: str | None = None

    is_default: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
