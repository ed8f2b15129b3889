# sourcing/schemas/magic_link.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

Scope = Literal["view", "pay", "track"]


class MagicLinkCreate(SQLModel):
    """
    Staff payload for generating a client magic link.

    Defaults: all scopes, MAGIC_LINK_DEFAULT_DAYS lifetime, unlimited uses.
    """

    model_config = ConfigDict(extra="forbid")

    scopes: list[Scope] | None = None
    expires_in_days: int | None = Field(default=None, ge=1, le=365)
    max_uses: int | None = Field(default=None, gt=0)
    quotation_id: uuid.UUID | None = None
    send_email: bool = False


class MagicLinkCreated(SQLModel):
    """
    Returned once at generation time; the raw token is not stored.
    """

    id: uuid.UUID
    token: str
    url: str
    scopes: list[Scope]
    expires_at: datetime
    max_uses: int | None


class MagicLinkRead(SQLModel):
    id: uuid.UUID
    client_id: uuid.UUID
    quotation_id: uuid.UUID | None
    scopes: list[Scope]
    expires_at: datetime
    revoked_at: datetime | None
    max_uses: int | None
    use_count: int
    last_accessed_at: datetime | None
    client_name_snapshot: str | None
    created_at: datetime


class MagicLinkSession(SQLModel):
    """
    What a validated token grants access to.
    """

    magic_link_id: uuid.UUID
    company_id: uuid.UUID
    company_name: str
    company_slug: str
    client_id: uuid.UUID
    client_name: str | None
    quotation_id: uuid.UUID | None
    scopes: list[Scope]
