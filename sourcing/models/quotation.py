# sourcing/models/quotation.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Quotation(SQLModel, table=True):
    """
    Priced proposal requested by a client, precursor to an order.

    Stored status casing: Pending | Approved | Confirmed | Rejected
    """

    __tablename__ = "quotations"

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

    quotation_code: str = Field(
        index=True,
        unique=True,
        description="Human-readable code, e.g. QT-2025-0042",
    )

    product_name: str
    quantity: int = Field(gt=0)

    service_type: str | None = None
    shipping_method: str | None = None

    destination_country: str
    destination_city: str | None = None

    image_urls: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    total_price: float | None = Field(
        default=None,
        description="Quoted price, set by staff",
    )

    selected_option: int | None = Field(
        default=None,
        description="Price option picked by the client",
    )

    status: str = Field(
        default="Pending",
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
