# sourcing/models/shipment.py
import uuid
from datetime import datetime, date, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Shipment(SQLModel, table=True):
    """
    Physical delivery of an accepted payment's goods.

    Created when a payment reaches an accepted-equivalent status.
    Status is operator-driven and unguarded; media lists only change
    through ShipmentService under a row lock.
    """

    __tablename__ = "shipping"

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

    quotation_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="quotations.id",
    )

    order_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="orders.id",
    )

    payment_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="payments.id",
        index=True,
    )

    tracking_number: str | None = Field(
        default=None,
        unique=True,
        index=True,
    )

    status: str = Field(default="processing", index=True)
    location: str | None = None

    images_urls: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    videos_urls: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    estimated_delivery: date | None = None
    delivered_at: date | None = None

    receiver_name: str | None = None
    receiver_phone: str | None = None
    receiver_address: str | None = None

    # "metadata" is reserved on declarative classes
    meta: dict | None = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
