# sourcing/schemas/checkout.py
import uuid
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

from sourcing.schemas.address import AddressUpsert
from sourcing.schemas.order import OrderRead
from sourcing.schemas.payment import PaymentRead

PaymentMethodType = Literal["bank", "crypto"]


class CheckoutRequest(SQLModel):
    """
    Checkout payload.

    Client provides:
      - payment method (type + id of a company bank account / wallet)
      - exactly one of address_id (a saved address) or new_address (to save)

    Backend derives:
      - items and total from the server-side cart
      - status = 'pending' for the payment, 'Processing' for the order
    """

    model_config = ConfigDict(extra="forbid")

    payment_method_type: PaymentMethodType
    payment_method_id: uuid.UUID
    address_id: uuid.UUID | None = None
    new_address: AddressUpsert | None = None


class CheckoutResult(SQLModel):
    order: OrderRead
    payment: PaymentRead
    message: str
