# sourcing/schemas/cart.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    quantity: int = Field(gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(gt=0)


class CartItemRead(SQLModel):
    """
    Read model for a single cart item.

    unit_price is the live product price when available, otherwise
    price_at_add; line_total = unit_price * quantity.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    price_at_add: float
    unit_price: float
    product_name: str | None = None
    product_image_url: str | None = None
    line_total: float
    created_at: datetime


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    items: list[CartItemRead]
    total_quantity: int
    total_price: float
