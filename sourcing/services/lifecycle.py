# sourcing/services/lifecycle.py
"""
Status rules for orders, quotations and shipments.

Each entity keeps its own vocabulary and transition table; they are
related in the business flow but are never compared to each other.
Payment statuses live in services.payment_status.

Everything here is pure: callers pass the entity and "now", and get a
decision back. Services turn negative decisions into HTTP errors.
"""
from datetime import date, datetime, time, timedelta, timezone

# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

ORDER_WAITING = "Waiting for information"
ORDER_PROCESSING = "Processing"
ORDER_SHIPPED = "Shipped"
ORDER_DELIVERED = "Delivered"

ORDER_TRANSITIONS: dict[str, set[str]] = {
    ORDER_WAITING: {ORDER_PROCESSING},
    ORDER_PROCESSING: {ORDER_SHIPPED},
    ORDER_SHIPPED: {ORDER_DELIVERED},
    ORDER_DELIVERED: set(),
}

# Receiver fields are the only order fields a client may change.
# destination_country is deliberately absent.
ORDER_RECEIVER_FIELDS = ("receiver_name", "receiver_phone", "receiver_address")

ORDER_READ_ONLY_STATUSES = {ORDER_SHIPPED, ORDER_DELIVERED}

CONTACT_SUPPORT_NOTICE = (
    "This order has already shipped. Please contact support to change "
    "delivery details."
)

DEFAULT_EDIT_WINDOW = timedelta(hours=3)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from sqlite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def order_created_instant(created_at: datetime | None, order_date: date) -> datetime:
    """
    Instant the edit window counts from: the precise timestamp if the
    row has one, else midnight UTC of the order date.
    """
    if created_at is not None:
        return as_utc(created_at)
    return datetime.combine(order_date, time.min, tzinfo=timezone.utc)


def receiver_edit_deadline(
    created_at: datetime | None,
    order_date: date,
    window: timedelta = DEFAULT_EDIT_WINDOW,
) -> datetime:
    return order_created_instant(created_at, order_date) + window


def can_edit_receiver(
    status: str,
    created_at: datetime | None,
    order_date: date,
    now: datetime,
    window: timedelta = DEFAULT_EDIT_WINDOW,
) -> bool:
    """
    Receiver name/phone/address may change only while the order is
    Processing and strictly less than `window` has elapsed since creation.
    """
    if status != ORDER_PROCESSING:
        return False
    elapsed = as_utc(now) - order_created_instant(created_at, order_date)
    return elapsed < window


def can_submit_receiver_info(status: str) -> bool:
    """Orders waiting for information accept a first receiver submission."""
    return status == ORDER_WAITING


def order_notice(status: str) -> str | None:
    if status in ORDER_READ_ONLY_STATUSES:
        return CONTACT_SUPPORT_NOTICE
    return None


def is_allowed_order_transition(current: str, new: str) -> bool:
    return new in ORDER_TRANSITIONS.get(current, set())


# ---------------------------------------------------------------------------
# Quotations
# ---------------------------------------------------------------------------

QUOTATION_PENDING = "Pending"
QUOTATION_APPROVED = "Approved"
QUOTATION_CONFIRMED = "Confirmed"
QUOTATION_REJECTED = "Rejected"

QUOTATION_TRANSITIONS: dict[str, set[str]] = {
    QUOTATION_PENDING: {QUOTATION_APPROVED, QUOTATION_CONFIRMED, QUOTATION_REJECTED},
    QUOTATION_APPROVED: {QUOTATION_CONFIRMED, QUOTATION_REJECTED},
    QUOTATION_CONFIRMED: set(),
    QUOTATION_REJECTED: set(),
}

# Statuses a client may set through a magic link
QUOTATION_CLIENT_SETTABLE = {QUOTATION_APPROVED, QUOTATION_CONFIRMED, QUOTATION_REJECTED}

QUOTATION_ACCEPTED = {QUOTATION_APPROVED, QUOTATION_CONFIRMED}

_QUOTATION_DISPLAY: dict[str, str] = {
    "pending": "pending",
    "approved": "approved",
    "confirmed": "approved",
    "rejected": "rejected",
}


def quotation_display_status(status: str) -> str:
    """Client-facing label: pending | approved | rejected."""
    return _QUOTATION_DISPLAY.get(status.strip().lower(), "pending")


def is_allowed_quotation_transition(current: str, new: str) -> bool:
    return new in QUOTATION_TRANSITIONS.get(current, set())


# ---------------------------------------------------------------------------
# Shipments
# ---------------------------------------------------------------------------

SHIPMENT_STATUSES = (
    "processing",
    "shipped",
    "in_transit",
    "delayed",
    "waiting",
    "delivered",
)

CUSTOM_SHIPMENT_STATUS = "custom"


def resolve_shipment_status(status: str, custom_status: str | None = None) -> str:
    """
    Staff pick a predefined status or "custom" with free text.

    Predefined values are stored lower-case with underscores
    ("In Transit" -> "in_transit"); custom text is stored as typed.
    Any status may follow any other.
    """
    key = status.strip().lower().replace(" ", "_")
    if key == CUSTOM_SHIPMENT_STATUS:
        text = (custom_status or "").strip()
        if not text:
            raise ValueError("custom_status is required for a custom status")
        return text
    if key.startswith("custom:"):
        text = status.strip()[len("custom:"):].strip()
        if not text:
            raise ValueError("custom status text cannot be empty")
        return text
    if key in SHIPMENT_STATUSES:
        return key
    return status.strip()


def is_delivered(status: str) -> bool:
    return status.strip().lower() == "delivered"


def shipment_display_dates(
    status: str,
    estimated_delivery: date | None,
    delivered_at: date | None,
) -> tuple[date | None, date | None]:
    """
    (estimated_delivery, delivered_at) as shown to readers: the estimate
    is dropped once delivered, and delivered_at only shows when delivered.
    """
    if is_delivered(status):
        return None, delivered_at
    return estimated_delivery, None
