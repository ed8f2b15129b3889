import uuid

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from sourcing.models.address import ClientAddress
from sourcing.models.cart import CartItem
from sourcing.models.order import Order
from sourcing.models.payment import Payment
from sourcing.models.product import Product
from sourcing.repositories.payment_repo import PaymentRepository
from sourcing.services.cart_service import cart_total, unit_price_for

CART = "/api/client/acme/cart"

NEW_ADDRESS = {
    "full_name": "Chloe Client",
    "address_line_1": "12 Harbour Road",
    "city": "Lagos",
    "country": "NG",
    "phone": "+234100000",
}


def _fill_cart(client, headers, products):
    widget, gadget = products
    client.post(CART, json={"product_id": str(widget.id), "quantity": 2}, headers=headers)
    return client.post(
        CART, json={"product_id": str(gadget.id), "quantity": 3}, headers=headers
    )


# ---------- pricing ----------


def test_cart_total_uses_live_price_else_snapshot():
    company_id = uuid.uuid4()
    live = Product(id=uuid.uuid4(), company_id=company_id, name="Live", price=10.0)
    gone = uuid.uuid4()
    items = [
        CartItem(company_id=company_id, user_id=uuid.uuid4(), product_id=live.id,
                 quantity=2, price_at_add=8.0),
        CartItem(company_id=company_id, user_id=uuid.uuid4(), product_id=gone,
                 quantity=3, price_at_add=5.0),
    ]

    assert cart_total(items, {live.id: live}) == 35


def test_inactive_product_falls_back_to_price_at_add():
    product = Product(company_id=uuid.uuid4(), name="Old", price=99.0, is_active=False)
    item = CartItem(company_id=product.company_id, user_id=uuid.uuid4(),
                    product_id=product.id, quantity=1, price_at_add=12.5)

    assert unit_price_for(item, product) == 12.5


# ---------- cart ----------


def test_cart_summary_totals(client, client_headers, products):
    resp = _fill_cart(client, client_headers, products)

    assert resp.status_code == 200
    body = resp.json()
    assert body["total_quantity"] == 5
    assert body["total_price"] == 35
    assert {i["product_name"] for i in body["items"]} == {"Widget", "Gadget"}


def test_adding_same_product_increases_quantity(client, client_headers, products):
    widget, _ = products
    for _ in range(2):
        resp = client.post(
            CART, json={"product_id": str(widget.id), "quantity": 1}, headers=client_headers
        )

    assert [i["quantity"] for i in resp.json()["items"]] == [2]


def test_cart_requires_client_of_company(client, staff_headers, products):
    resp = client.get(CART, headers=staff_headers)
    assert resp.status_code == 403


def test_cart_requires_token(client, company):
    assert client.get(CART).status_code == 401


def test_unknown_company_is_404(client, client_headers):
    assert client.get("/api/client/nope/cart", headers=client_headers).status_code == 404


# ---------- checkout ----------


def test_empty_cart_checkout_is_rejected_before_any_write(
    client, session, client_headers, bank_account
):
    resp = client.post(
        f"{CART}/checkout",
        json={
            "payment_method_type": "bank",
            "payment_method_id": str(bank_account.id),
            "new_address": NEW_ADDRESS,
        },
        headers=client_headers,
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cart is empty"
    assert session.exec(select(Payment)).all() == []
    assert session.exec(select(Order)).all() == []
    assert session.exec(select(ClientAddress)).all() == []


def test_checkout_creates_order_and_pending_payment(
    client, session, client_headers, client_profile, products, bank_account
):
    _fill_cart(client, client_headers, products)

    resp = client.post(
        f"{CART}/checkout",
        json={
            "payment_method_type": "bank",
            "payment_method_id": str(bank_account.id),
            "new_address": NEW_ADDRESS,
        },
        headers=client_headers,
    )

    assert resp.status_code == 200
    body = resp.json()
    order, payment = body["order"], body["payment"]

    assert order["status"] == "Processing"
    assert order["destination_country"] == "NG"
    assert order["receiver_name"] == "Chloe Client"
    assert order["can_edit_receiver"] is True
    assert order["amount"] == 35

    assert payment["status"] == "pending"
    assert payment["amount"] == 35
    assert payment["payment_method"] == "First Bank - 001-234"
    assert payment["reference_number"].startswith("PAY-")
    assert payment["meta"]["order_id"] == order["id"]
    assert payment["meta"]["payment_method_type"] == "bank"
    assert len(payment["meta"]["cart_items"]) == 2

    cart = client.get(CART, headers=client_headers).json()
    assert cart["items"] == []

    addresses = session.exec(select(ClientAddress)).all()
    assert len(addresses) == 1
    assert addresses[0].is_default is True


def test_checkout_with_crypto_wallet_descriptor(
    client, client_headers, products, crypto_wallet
):
    _fill_cart(client, client_headers, products)

    resp = client.post(
        f"{CART}/checkout",
        json={
            "payment_method_type": "crypto",
            "payment_method_id": str(crypto_wallet.id),
            "new_address": NEW_ADDRESS,
        },
        headers=client_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["payment"]["payment_method"] == "Treasury (USDT - TRC20)"


def test_checkout_failure_keeps_cart(client, session, client_headers, products):
    _fill_cart(client, client_headers, products)

    resp = client.post(
        f"{CART}/checkout",
        json={
            "payment_method_type": "bank",
            "payment_method_id": str(uuid.uuid4()),
            "new_address": NEW_ADDRESS,
        },
        headers=client_headers,
    )

    assert resp.status_code == 400
    assert len(client.get(CART, headers=client_headers).json()["items"]) == 2
    assert session.exec(select(Payment)).all() == []


def test_checkout_requires_an_address(client, client_headers, products, bank_account):
    _fill_cart(client, client_headers, products)

    resp = client.post(
        f"{CART}/checkout",
        json={"payment_method_type": "bank", "payment_method_id": str(bank_account.id)},
        headers=client_headers,
    )

    assert resp.status_code == 400
    assert len(client.get(CART, headers=client_headers).json()["items"]) == 2


def test_checkout_rejects_unknown_payment_method_type(client, client_headers, products):
    _fill_cart(client, client_headers, products)

    resp = client.post(
        f"{CART}/checkout",
        json={
            "payment_method_type": "cash",
            "payment_method_id": str(uuid.uuid4()),
            "new_address": NEW_ADDRESS,
        },
        headers=client_headers,
    )

    assert resp.status_code == 422


def test_repeated_idempotency_key_returns_first_checkout(
    client, session, client_headers, products, bank_account
):
    _fill_cart(client, client_headers, products)
    payload = {
        "payment_method_type": "bank",
        "payment_method_id": str(bank_account.id),
        "new_address": NEW_ADDRESS,
    }
    headers = {**client_headers, "Idempotency-Key": "attempt-1"}

    first = client.post(f"{CART}/checkout", json=payload, headers=headers)
    second = client.post(f"{CART}/checkout", json=payload, headers=headers)

    assert first.status_code == second.status_code == 200
    assert first.json()["payment"]["id"] == second.json()["payment"]["id"]
    assert first.json()["order"]["id"] == second.json()["order"]["id"]
    assert len(session.exec(select(Payment)).all()) == 1


def test_checkout_charges_live_price_after_price_change(
    client, session, client_headers, products, bank_account
):
    widget, _ = products
    _fill_cart(client, client_headers, products)
    widget.price = 20.0
    session.add(widget)
    session.commit()

    resp = client.post(
        f"{CART}/checkout",
        json={
            "payment_method_type": "bank",
            "payment_method_id": str(bank_account.id),
            "new_address": NEW_ADDRESS,
        },
        headers=client_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["payment"]["amount"] == 55
    lines = {i["product_name"]: i for i in resp.json()["payment"]["meta"]["cart_items"]}
    assert lines["Widget"]["unit_price"] == 20.0
    assert lines["Widget"]["total_price"] == 40.0


def test_checkout_uses_snapshot_price_for_deactivated_product(
    client, session, client_headers, products, bank_account
):
    _, gadget = products
    _fill_cart(client, client_headers, products)
    gadget.price = 99.0
    gadget.is_active = False
    session.add(gadget)
    session.commit()

    resp = client.post(
        f"{CART}/checkout",
        json={
            "payment_method_type": "bank",
            "payment_method_id": str(bank_account.id),
            "new_address": NEW_ADDRESS,
        },
        headers=client_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["order"]["amount"] == 35


def test_checkout_rejects_both_address_forms(
    client, session, client_headers, products, bank_account
):
    _fill_cart(client, client_headers, products)
    saved = client.put(
        "/api/client/acme/addresses", json=NEW_ADDRESS, headers=client_headers
    ).json()

    resp = client.post(
        f"{CART}/checkout",
        json={
            "payment_method_type": "bank",
            "payment_method_id": str(bank_account.id),
            "address_id": saved["id"],
            "new_address": NEW_ADDRESS,
        },
        headers=client_headers,
    )

    assert resp.status_code == 400
    assert len(client.get(CART, headers=client_headers).json()["items"]) == 2
    assert session.exec(select(Payment)).all() == []


def test_idempotency_key_is_unique_per_client(session, company, client_profile):
    for n in range(2):
        session.add(
            Payment(
                company_id=company.id,
                user_id=client_profile.id,
                amount=10.0,
                payment_method="First Bank - 001-234",
                reference_number=f"PAY-2025-000{n}",
                idempotency_key="attempt-1",
            )
        )
        if n == 0:
            session.commit()

    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_concurrent_checkout_with_same_key_replays_winner(
    client, session, client_headers, products, bank_account, monkeypatch
):
    payload = {
        "payment_method_type": "bank",
        "payment_method_id": str(bank_account.id),
        "new_address": NEW_ADDRESS,
    }
    headers = {**client_headers, "Idempotency-Key": "attempt-1"}

    _fill_cart(client, client_headers, products)
    first = client.post(f"{CART}/checkout", json=payload, headers=headers).json()

    # Second attempt misses the pre-check, as a racing request would.
    real_lookup = PaymentRepository.get_by_idempotency_key
    calls = {"n": 0}

    def lookup_after_race(self, *args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_lookup(self, *args, **kwargs)

    monkeypatch.setattr(PaymentRepository, "get_by_idempotency_key", lookup_after_race)
    _fill_cart(client, client_headers, products)
    second = client.post(f"{CART}/checkout", json=payload, headers=headers)

    assert second.status_code == 200
    assert second.json()["payment"]["id"] == first["payment"]["id"]
    assert len(session.exec(select(Payment)).all()) == 1
    assert len(session.exec(select(Order)).all()) == 1
    assert len(client.get(CART, headers=client_headers).json()["items"]) == 2
