# sourcing/models/company.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Company(SQLModel, table=True):
    """
    Tenant account. Every other row is scoped by company_id.

    The public storefront and all API routes address a company
    by its unique slug.
    """

    __tablename__ = "companies"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=200,
        description="Display name of the company",
    )

    slug: str = Field(
        max_length=100,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    currency: str = Field(
        default="USD",
        max_length=10,
        description="Default currency for orders and payments",
    )

    country: str | None = Field(
        default=None,
        description="Company country, used on invoices",
    )

    logo_url: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class Profile(SQLModel, table=True):
    """
    Application profile for a Supabase auth user.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Membership:
      - company_id: the tenant this profile belongs to (None until invited)
      - role: "owner" | "staff" | "client"
      - status: "active" | "banned"
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    full_name: str = Field(
        max_length=100,
        description="Display name; first part of email by default",
    )

    phone: str | None = None

    company_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="companies.id",
        index=True,
    )

    role: str = Field(
        default="client",
        index=True,
        description="Tenant role: owner | staff | client",
    )

    status: str = Field(
        default="active",
        description="active | banned",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
