# sourcing/models/payment.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field


class Payment(SQLModel, table=True):
    """
    A payer's claim to have paid for a checkout.

    `status` keeps the datastore casing (e.g. "Accepted", "pending");
    services.payment_status maps it to display labels.

    `meta` snapshots the checkout:
      - order_id
      - cart_items: [{product_id, product_name, quantity, unit_price, total_price, image}]
      - address_id
      - payment_method_type / payment_method_id
    """

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "user_id",
            "idempotency_key",
            name="payments_idempotency_key_uniq",
        ),
    )

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

    amount: float = Field(ge=0)
    currency: str = Field(default="USD")

    payment_method: str = Field(description="Human-readable method descriptor")

    status: str = Field(default="pending", index=True)

    reference_number: str = Field(index=True, unique=True)

    payer_name: str | None = None
    payer_email: str | None = None

    proof_url: str | None = None
    payment_notes: str | None = None

    idempotency_key: str | None = Field(
        default=None,
        index=True,
        description="Client-supplied checkout attempt key",
    )

    meta: dict | None = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class BankAccount(SQLModel, table=True):
    """Bank transfer destination offered by a company."""

    __tablename__ = "bank_accounts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    company_id: uuid.UUID = Field(
        foreign_key="companies.id",
        index=True,
    )

    bank_name: str
    account_number: str
    currency: str = Field(default="USD")
    is_active: bool = Field(default=True)


class CryptoWallet(SQLModel, table=True):
    """Crypto wallet offered by a company."""

    __tablename__ = "crypto_wallets"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    company_id: uuid.UUID = Field(
        foreign_key="companies.id",
        index=True,
    )

    wallet_name: str
    cryptocurrency: str
    network: str | None = None
    wallet_address: str | None = None
    is_active: bool = Field(default=True)
