from datetime import date, datetime, timedelta, timezone

import pytest

from sourcing.schemas.order import ReceiverInfoUpdate
from sourcing.services import lifecycle

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


# ---------- order receiver edit window ----------


@pytest.mark.parametrize(
    "status",
    ["Waiting for information", "Shipped", "Delivered"],
)
def test_receiver_edit_disabled_outside_processing(status):
    for elapsed in (timedelta(0), timedelta(minutes=5), timedelta(days=2)):
        assert not lifecycle.can_edit_receiver(status, T0, T0.date(), T0 + elapsed)


@pytest.mark.parametrize(
    "elapsed, expected",
    [
        (timedelta(0), True),
        (timedelta(hours=2, minutes=59), True),
        (timedelta(hours=3) - timedelta(microseconds=1), True),
        (timedelta(hours=3), False),
        (timedelta(hours=3, minutes=1), False),
    ],
)
def test_receiver_edit_window_is_strict(elapsed, expected):
    assert lifecycle.can_edit_receiver("Processing", T0, T0.date(), T0 + elapsed) is expected


def test_missing_created_at_counts_from_midnight_of_order_date():
    order_date = date(2025, 3, 1)
    midnight = datetime(2025, 3, 1, tzinfo=timezone.utc)

    assert lifecycle.can_edit_receiver(
        "Processing", None, order_date, midnight + timedelta(hours=2)
    )
    assert not lifecycle.can_edit_receiver(
        "Processing", None, order_date, midnight + timedelta(hours=3)
    )


def test_naive_created_at_is_treated_as_utc():
    naive = T0.replace(tzinfo=None)
    assert lifecycle.can_edit_receiver(
        "Processing", naive, T0.date(), T0 + timedelta(hours=1)
    )


def test_destination_country_is_never_a_receiver_field():
    assert "destination_country" not in lifecycle.ORDER_RECEIVER_FIELDS
    assert "destination_country" not in ReceiverInfoUpdate.model_fields


def test_shipped_orders_carry_contact_support_notice():
    assert lifecycle.order_notice("Shipped") == lifecycle.CONTACT_SUPPORT_NOTICE
    assert lifecycle.order_notice("Delivered") == lifecycle.CONTACT_SUPPORT_NOTICE
    assert lifecycle.order_notice("Processing") is None


# ---------- order transitions ----------


@pytest.mark.parametrize(
    "current, new, allowed",
    [
        ("Waiting for information", "Processing", True),
        ("Processing", "Shipped", True),
        ("Shipped", "Delivered", True),
        ("Waiting for information", "Shipped", False),
        ("Processing", "Delivered", False),
        ("Shipped", "Processing", False),
        ("Delivered", "Shipped", False),
    ],
)
def test_order_transitions(current, new, allowed):
    assert lifecycle.is_allowed_order_transition(current, new) is allowed


# ---------- quotations ----------


def test_quotation_display_status_folds_confirmed_into_approved():
    assert lifecycle.quotation_display_status("Pending") == "pending"
    assert lifecycle.quotation_display_status("Approved") == "approved"
    assert lifecycle.quotation_display_status("Confirmed") == "approved"
    assert lifecycle.quotation_display_status("Rejected") == "rejected"


def test_quotation_transitions():
    assert lifecycle.is_allowed_quotation_transition("Pending", "Approved")
    assert lifecycle.is_allowed_quotation_transition("Approved", "Confirmed")
    assert not lifecycle.is_allowed_quotation_transition("Rejected", "Approved")
    assert not lifecycle.is_allowed_quotation_transition("Confirmed", "Pending")


# ---------- shipments ----------


@pytest.mark.parametrize(
    "raw, custom, expected",
    [
        ("processing", None, "processing"),
        ("In Transit", None, "in_transit"),
        ("DELIVERED", None, "delivered"),
        ("custom", "Held at customs", "Held at customs"),
        ("Custom: Awaiting pickup", None, "Awaiting pickup"),
    ],
)
def test_resolve_shipment_status(raw, custom, expected):
    assert lifecycle.resolve_shipment_status(raw, custom) == expected


def test_custom_shipment_status_needs_text():
    with pytest.raises(ValueError):
        lifecycle.resolve_shipment_status("custom", "   ")


def test_shipment_display_dates():
    est = date(2025, 4, 1)
    delivered = date(2025, 3, 28)

    assert lifecycle.shipment_display_dates("in_transit", est, delivered) == (est, None)
    assert lifecycle.shipment_display_dates("delivered", est, delivered) == (None, delivered)
