# sourcing/schemas/order.py
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel

OrderStatus = Literal["Waiting for information", "Processing", "Shipped", "Delivered"]


class OrderRead(SQLModel):
    """
    Order as shown to clients and staff.

    `can_edit_receiver` and `edit_deadline` are affordance hints only;
    the receiver endpoints re-check the same rule.
    """

    id: uuid.UUID
    reference: str
    quotation_id: uuid.UUID | None
    product_name: str
    product_image_url: str | None
    quantity: int
    amount: float
    currency: str
    status: OrderStatus
    destination_country: str | None
    receiver_name: str | None
    receiver_phone: str | None
    receiver_address: str | None
    order_date: date
    created_at: datetime | None
    can_edit_receiver: bool = False
    edit_deadline: datetime | None = None
    notice: str | None = None


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


class ReceiverInfoCreate(SQLModel):
    """
    First receiver submission for an order waiting for information.
    Moves the order to Processing.
    """

    model_config = ConfigDict(extra="forbid")

    receiver_name: str
    receiver_phone: str
    receiver_address: str

    @field_validator("receiver_name", "receiver_phone", "receiver_address")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _strip_required(v)


class ReceiverInfoUpdate(SQLModel):
    """
    Partial receiver edit.

    Only receiver fields are accepted; anything else (notably
    destination_country) is rejected with 422.
    """

    model_config = ConfigDict(extra="forbid")

    receiver_name: str | None = None
    receiver_phone: str | None = None
    receiver_address: str | None = None

    @field_validator("receiver_name", "receiver_phone", "receiver_address")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v)

    @model_validator(mode="after")
    def at_least_one(self) -> "ReceiverInfoUpdate":
        if not self.model_fields_set:
            raise ValueError("at least one receiver field is required")
        return self


class OrderStatusUpdate(SQLModel):
    """
    Staff payload to advance an order.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus
