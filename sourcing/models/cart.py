# sourcing/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class CartItem(SQLModel, table=True):
    """
    Shopping cart entry for a client of a company.
    One client cannot have 2 rows for the same product.

    Name, price and image are snapshotted at add time and are not
    re-fetched from the product afterwards.
    """

    __tablename__ = "cart_items"

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

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    price_at_add: float = Field(
        description="Price when added to cart",
    )

    product_name: str | None = None
    product_image_url: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
