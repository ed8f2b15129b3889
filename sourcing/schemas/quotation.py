# sourcing/schemas/quotation.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

QuotationStatus = Literal["Pending", "Approved", "Confirmed", "Rejected"]
QuotationDisplayStatus = Literal["pending", "approved", "rejected"]


class QuotationCreate(SQLModel):
    """
    Storefront quotation request submitted by a client.
    """

    model_config = ConfigDict(extra="forbid")

    product_name: str = Field(max_length=200)
    quantity: int = Field(gt=0)
    destination_country: str
    destination_city: str | None = None
    service_type: str | None = None
    shipping_method: str | None = None
    image_urls: list[str] = Field(default_factory=list)

    @field_validator("product_name", "destination_country")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class QuotationRead(SQLModel):
    id: uuid.UUID
    quotation_code: str
    product_name: str
    quantity: int
    service_type: str | None
    shipping_method: str | None
    destination_country: str
    destination_city: str | None
    image_urls: list[str]
    total_price: float | None
    selected_option: int | None
    status: QuotationStatus
    display_status: QuotationDisplayStatus
    created_at: datetime


class QuotationClientUpdate(SQLModel):
    """
    Magic-link PATCH body. Only these two fields can ever change;
    statuses outside the allow-list are ignored.
    """

    status: str | None = None
    selected_option: int | None = None


class QuotationPriceUpdate(SQLModel):
    """
    Staff sets the quoted price.
    """

    model_config = ConfigDict(extra="forbid")

    total_price: float = Field(gt=0)
