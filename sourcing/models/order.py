# sourcing/models/order.py
import uuid
from datetime import datetime, date, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order, created by checkout or by approving a quotation.

    Lifecycle (see services.lifecycle):
      Waiting for information -> Processing -> Shipped -> Delivered

    destination_country is set at creation and never changed afterwards.
    Receiver fields are editable only while Processing and inside the
    edit window counted from created_at (or order_date when missing).
    """

    __tablename__ = "orders"

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

    reference: str = Field(
        index=True,
        unique=True,
        description="Human-readable reference, e.g. ORD-2025-0042",
    )

    quotation_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="quotations.id",
        index=True,
    )

    product_name: str
    product_image_url: str | None = None

    quantity: int = Field(ge=0)

    amount: float = Field(
        ge=0,
        description="Order total in `currency`",
    )
    currency: str = Field(default="USD")

    status: str = Field(
        default="Processing",
        index=True,
        description="Waiting for information | Processing | Shipped | Delivered",
    )

    destination_country: str | None = Field(
        default=None,
        description="Immutable once set",
    )

    receiver_name: str | None = None
    receiver_phone: str | None = None
    receiver_address: str | None = None

    order_date: date = Field(
        default_factory=lambda: datetime.now(timezone.utc).date(),
        description="Calendar date of the order",
    )

    created_at: datetime | None = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Precise creation instant (UTC), missing on legacy rows",
    )


class ShippingReceiver(SQLModel, table=True):
    """
    Receiver information submitted for an order.

    One row per submission (initial info and every permitted edit),
    newest last.
    """

    __tablename__ = "shipping_receivers"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    company_id: uuid.UUID = Field(
        foreign_key="companies.id",
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    name: str
    phone: str
    address: str

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
