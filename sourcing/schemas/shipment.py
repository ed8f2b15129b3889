# sourcing/schemas/shipment.py
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel

MediaKind = Literal["images", "videos"]


class ShipmentRead(SQLModel):
    """
    Shipment tracking view.

    estimated_delivery is hidden once delivered; delivered_at only
    shows for delivered shipments.
    """

    id: uuid.UUID
    tracking_number: str | None
    status: str
    location: str | None
    images_urls: list[str]
    videos_urls: list[str]
    estimated_delivery: date | None
    delivered_at: date | None
    receiver_name: str | None
    receiver_phone: str | None
    receiver_address: str | None
    order_id: uuid.UUID | None
    quotation_id: uuid.UUID | None
    payment_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class ShipmentUpdate(SQLModel):
    """
    Staff edit. Every field is optional and unguarded.

    status: a predefined value ("processing", "In Transit", ...) or
    "custom" together with custom_status.
    """

    model_config = ConfigDict(extra="forbid")

    status: str | None = None
    custom_status: str | None = None
    location: str | None = None
    estimated_delivery: date | None = None
    delivered_at: date | None = None

    @field_validator("status", "location")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ShipmentMediaDelete(SQLModel):
    model_config = ConfigDict(extra="forbid")

    kind: MediaKind
    url: str
