import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from sourcing.models.address import ClientAddress
from sourcing.models.order import Order
from sourcing.models.payment import Payment
from sourcing.models.shipment import Shipment

STORE_PAYMENTS = "/api/store/acme/payments"
CLIENT_PAYMENTS = "/api/client/acme/payments"


@pytest.fixture
def make_payment(session, company, client_profile):
    address = ClientAddress(
        company_id=company.id,
        user_id=client_profile.id,
        full_name="Chloe Client",
        address_line_1="12 Harbour Road",
        city="Lagos",
        country="NG",
        phone="+234100000",
        is_default=True,
    )
    order = Order(
        company_id=company.id,
        user_id=client_profile.id,
        reference="ORD-2025-0001",
        product_name="Widget",
        quantity=2,
        amount=20.0,
        destination_country="NG",
    )
    session.add(address)
    session.add(order)
    session.commit()

    counter = {"n": 0}

    def _make(status="pending", amount=20.0):
        counter["n"] += 1
        payment = Payment(
            company_id=company.id,
            user_id=client_profile.id,
            amount=amount,
            payment_method="First Bank - 001-234",
            status=status,
            reference_number=f"PAY-2025-{counter['n']:04d}",
            payer_name="Chloe Client",
            payer_email="client@example.com",
            meta={
                "order_id": str(order.id),
                "address_id": str(address.id),
                "cart_items": [
                    {
                        "product_id": "p-1",
                        "product_name": "Widget",
                        "quantity": 2,
                        "unit_price": 10.0,
                        "total_price": 20.0,
                        "image": None,
                    }
                ],
            },
        )
        session.add(payment)
        session.commit()
        session.refresh(payment)
        return payment

    return _make


def _set_status(client, headers, payment, status):
    return client.patch(
        f"{STORE_PAYMENTS}/{payment.id}/status", json={"status": status}, headers=headers
    )


def test_approving_returns_stored_casing_and_label(client, staff_headers, make_payment):
    payment = make_payment()

    resp = _set_status(client, staff_headers, payment, "approved")

    assert resp.status_code == 200
    assert resp.json() == {"status": "Accepted", "label": "approved"}


def test_approving_creates_one_shipment(client, session, staff_headers, make_payment):
    payment = make_payment()

    _set_status(client, staff_headers, payment, "approved")
    _set_status(client, staff_headers, payment, "Accepted")
    _set_status(client, staff_headers, payment, "completed")

    shipments = session.exec(select(Shipment).where(Shipment.payment_id == payment.id)).all()
    assert len(shipments) == 1
    shipment = shipments[0]
    assert shipment.tracking_number.startswith("SS-")
    assert shipment.status == "processing"
    assert shipment.location == "Lagos"
    assert shipment.receiver_name == "Chloe Client"
    assert shipment.receiver_address == "12 Harbour Road, Lagos, NG"
    assert shipment.order_id is not None


def test_unknown_status_is_400(client, staff_headers, make_payment):
    resp = _set_status(client, staff_headers, make_payment(), "refunded")
    assert resp.status_code == 400


def test_terminal_status_cannot_change(client, session, staff_headers, make_payment):
    payment = make_payment(status="Rejected")

    resp = _set_status(client, staff_headers, payment, "approved")

    assert resp.status_code == 400
    assert session.exec(select(Shipment)).all() == []


def test_same_status_is_a_noop(client, staff_headers, make_payment):
    payment = make_payment(status="Pending")

    resp = _set_status(client, staff_headers, payment, "pending")

    assert resp.status_code == 200
    assert resp.json() == {"status": "Pending", "label": "pending"}


def test_metrics_count_accepted_as_approved(client, staff_headers, make_payment):
    make_payment(status="Accepted", amount=10.0)
    make_payment(status="approved", amount=20.0)
    make_payment(status="completed", amount=30.0)
    make_payment(status="pending")
    make_payment(status="Rejected")
    make_payment(status="failed")

    resp = client.get(f"{STORE_PAYMENTS}/metrics", headers=staff_headers)

    assert resp.status_code == 200
    assert resp.json() == {
        "total": 6,
        "pending": 1,
        "approved": 3,
        "rejected": 1,
        "failed": 1,
        "total_amount_approved": 60.0,
    }


def test_list_filter_matches_stored_synonyms(client, staff_headers, make_payment):
    accepted = make_payment(status="Accepted")
    make_payment(status="pending")

    resp = client.get(STORE_PAYMENTS, params={"status": "approved"}, headers=staff_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert [p["id"] for p in body] == [str(accepted.id)]
    assert body[0]["status"] == "Accepted"
    assert body[0]["status_label"] == "approved"


def test_invoice_only_for_accepted_payments(client, client_headers, make_payment):
    pending = make_payment()
    accepted = make_payment(status="Accepted")

    refused = client.get(f"{CLIENT_PAYMENTS}/{pending.id}/invoice", headers=client_headers)
    assert refused.status_code == 400
    assert refused.json()["detail"] == "Invoice can only be downloaded for accepted payments"

    resp = client.get(f"{CLIENT_PAYMENTS}/{accepted.id}/invoice", headers=client_headers)
    assert resp.status_code == 200
    invoice = resp.json()
    assert invoice["company_name"] == "Acme Sourcing"
    assert invoice["total"] == 20.0
    assert [(line["product_name"], line["quantity"]) for line in invoice["lines"]] == [
        ("Widget", 2)
    ]


def test_proof_upload_stores_url(client, client_headers, make_payment, fake_storage):
    payment = make_payment()

    resp = client.post(
        f"{CLIENT_PAYMENTS}/{payment.id}/proof",
        files={"file": ("receipt.pdf", b"%PDF-1.4", "application/pdf")},
        headers=client_headers,
    )

    assert resp.status_code == 200
    bucket, path, _ = fake_storage["uploaded"][0]
    assert bucket == "payment-proofs"
    assert path.startswith(f"payment_proof_{payment.id}_")
    assert path.endswith(".pdf")
    assert resp.json()["proof_url"].endswith(path)


def test_proof_upload_rejects_other_types(client, client_headers, make_payment, fake_storage):
    payment = make_payment()

    resp = client.post(
        f"{CLIENT_PAYMENTS}/{payment.id}/proof",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=client_headers,
    )

    assert resp.status_code == 400
    assert fake_storage["uploaded"] == []


def test_clients_cannot_change_payment_status(client, client_headers, make_payment):
    resp = _set_status(client, client_headers, make_payment(), "approved")
    assert resp.status_code == 403


def test_reference_numbers_are_unique(session, make_payment):
    first = make_payment()
    duplicate = Payment(
        company_id=first.company_id,
        user_id=first.user_id,
        amount=5.0,
        payment_method="First Bank - 001-234",
        reference_number=first.reference_number,
    )
    session.add(duplicate)

    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()
