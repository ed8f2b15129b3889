# sourcing/schemas/product.py
import uuid
from datetime import datetime

from sqlmodel import SQLModel


class ProductRead(SQLModel):
    """
    Storefront product as shown to clients before adding it to the cart.
    """

    id: uuid.UUID
    name: str
    price: float
    image_url: str | None
    is_active: bool
    created_at: datetime
