# sourcing/models/magic_link.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class MagicLink(SQLModel, table=True):
    """
    Hashed, expiring, use-limited access token for one client.

    Only the SHA-256 hex digest of the token is stored; the raw token
    is returned once, when the link is generated.
    """

    __tablename__ = "client_magic_links"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    company_id: uuid.UUID = Field(
        foreign_key="companies.id",
        index=True,
    )

    client_id: uuid.UUID = Field(
        foreign_key="profiles.id",
        index=True,
    )

    quotation_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="quotations.id",
    )

    token_hash: str = Field(
        unique=True,
        index=True,
    )

    scopes: list[str] = Field(
        default_factory=lambda: ["view", "pay", "track"],
        sa_column=Column(JSON, nullable=False),
    )

    expires_at: datetime
    revoked_at: datetime | None = None

    max_uses: int | None = Field(default=None, gt=0)
    use_count: int = Field(default=0, ge=0)
    last_accessed_at: datetime | None = None

    client_name_snapshot: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
