# sourcing/schemas/payment.py
import uuid
from datetime import datetime
from typing import Any

from pydantic import ConfigDict
from sqlmodel import SQLModel


class PaymentRead(SQLModel):
    """
    Payment with both the stored status and its display label.
    """

    id: uuid.UUID
    reference_number: str
    amount: float
    currency: str
    payment_method: str
    status: str
    status_label: str
    payer_name: str | None
    payer_email: str | None
    proof_url: str | None
    payment_notes: str | None
    meta: dict[str, Any] | None
    created_at: datetime


class PaymentStatusUpdate(SQLModel):
    """
    Staff payload; any casing or synonym of a known status is accepted
    ("approved", "Accepted", "Pending", ...).
    """

    model_config = ConfigDict(extra="forbid")

    status: str


class PaymentStatusResult(SQLModel):
    status: str
    label: str


class PaymentMetrics(SQLModel):
    """
    Counts by display label. `approved` counts every accepted-equivalent
    payment (Accepted, approved, completed).
    """

    total: int
    pending: int
    approved: int
    rejected: int
    failed: int
    total_amount_approved: float


class InvoiceLine(SQLModel):
    product_id: str | None = None
    product_name: str
    quantity: int
    unit_price: float
    total_price: float
    image: str | None = None


class InvoiceRead(SQLModel):
    """
    Derived invoice view of an accepted payment; never persisted.
    """

    invoice_number: str
    payment_id: uuid.UUID
    issued_at: datetime
    company_name: str
    company_country: str | None
    company_logo_url: str | None
    payer_name: str | None
    payer_email: str | None
    payment_method: str
    currency: str
    lines: list[InvoiceLine]
    total: float
