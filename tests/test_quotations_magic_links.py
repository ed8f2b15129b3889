from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from sourcing.models.magic_link import MagicLink
from sourcing.models.order import Order
from sourcing.services.magic_link_service import hash_token

CLIENT_QUOTATIONS = "/api/client/acme/quotations"
STORE = "/api/store/acme"


@pytest.fixture
def quotation(client, client_headers):
    resp = client.post(
        CLIENT_QUOTATIONS,
        json={
            "product_name": "Custom mugs",
            "quantity": 500,
            "destination_country": "NG",
            "image_urls": ["https://cdn.example.com/mug.png"],
        },
        headers=client_headers,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def magic_link(client, staff_headers, client_profile):
    def _make(**payload):
        resp = client.post(
            f"{STORE}/clients/{client_profile.id}/magic-links",
            json=payload,
            headers=staff_headers,
        )
        assert resp.status_code == 201
        return resp.json()

    return _make


# ---------- quotations ----------


def test_quotation_request_starts_pending(quotation):
    assert quotation["status"] == "Pending"
    assert quotation["display_status"] == "pending"
    assert quotation["quotation_code"].startswith("QT-")


def test_staff_price_quotation(client, staff_headers, quotation):
    resp = client.patch(
        f"{STORE}/quotations/{quotation['id']}/price",
        json={"total_price": 1250.0},
        headers=staff_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["total_price"] == 1250.0


# ---------- magic links ----------


def test_generated_link_stores_only_the_hash(client, session, magic_link):
    created = magic_link()

    assert created["scopes"] == ["view", "pay", "track"]
    assert created["url"].endswith(f"/c/{created['token']}")

    link = session.exec(select(MagicLink)).one()
    assert link.token_hash == hash_token(created["token"])
    assert link.token_hash != created["token"]
    assert link.client_name_snapshot == "Chloe Client"


def test_validate_counts_uses(client, magic_link):
    created = magic_link(max_uses=2)
    url = f"/api/c/{created['token']}/validate"

    first = client.get(url)
    assert first.status_code == 200
    assert first.json()["company_slug"] == "acme"

    assert client.get(url).status_code == 200

    third = client.get(url)
    assert third.status_code == 403
    assert third.json()["detail"] == "Token max uses reached"


def test_unknown_token_is_rejected(client, company):
    resp = client.get("/api/c/not-a-real-token/validate")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Invalid token"


def test_expired_token_is_rejected(client, session, magic_link):
    created = magic_link()
    link = session.exec(select(MagicLink)).one()
    link.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    session.add(link)
    session.commit()

    resp = client.get(f"/api/c/{created['token']}/validate")
    assert resp.json()["detail"] == "Token expired"


def test_revoked_token_is_rejected(client, staff_headers, magic_link):
    created = magic_link()

    revoked = client.post(
        f"{STORE}/magic-links/{created['id']}/revoke", headers=staff_headers
    )
    assert revoked.status_code == 200
    assert revoked.json()["revoked_at"] is not None

    resp = client.get(f"/api/c/{created['token']}/quotations")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Token revoked"


def test_expiry_is_checked_before_revocation(client, session, staff_headers, magic_link):
    created = magic_link()
    client.post(f"{STORE}/magic-links/{created['id']}/revoke", headers=staff_headers)
    link = session.exec(select(MagicLink)).one()
    link.expires_at = datetime.now(timezone.utc) - timedelta(days=1)
    session.add(link)
    session.commit()

    resp = client.get(f"/api/c/{created['token']}/validate")
    assert resp.json()["detail"] == "Token expired"


def test_missing_scope_is_403(client, magic_link):
    created = magic_link(scopes=["view"])

    assert client.get(f"/api/c/{created['token']}/quotations").status_code == 200
    assert client.get(f"/api/c/{created['token']}/payments").status_code == 403
    assert client.get(f"/api/c/{created['token']}/shipping").status_code == 403


def test_portal_reads_do_not_count_uses(client, magic_link):
    created = magic_link(max_uses=1)

    for _ in range(3):
        assert client.get(f"/api/c/{created['token']}/quotations").status_code == 200
    assert client.get(f"/api/c/{created['token']}/validate").status_code == 200


def test_staff_lists_links(client, staff_headers, magic_link):
    magic_link()
    magic_link(scopes=["track"])

    resp = client.get(f"{STORE}/magic-links", headers=staff_headers)

    assert resp.status_code == 200
    assert len(resp.json()) == 2


# ---------- approval through the portal ----------


def test_approving_via_link_creates_one_waiting_order(
    client, session, magic_link, quotation
):
    token = magic_link()["token"]
    url = f"/api/c/{token}/quotations/{quotation['id']}"

    approved = client.patch(url, json={"status": "Approved", "selected_option": 2})
    assert approved.status_code == 200
    assert approved.json()["status"] == "Approved"
    assert approved.json()["selected_option"] == 2

    confirmed = client.patch(url, json={"status": "Confirmed"})
    assert confirmed.json()["display_status"] == "approved"

    orders = session.exec(select(Order)).all()
    assert len(orders) == 1
    assert orders[0].status == "Waiting for information"
    assert orders[0].product_name == "Custom mugs"


def test_statuses_outside_allow_list_are_ignored(client, magic_link, quotation):
    token = magic_link()["token"]
    url = f"/api/c/{token}/quotations/{quotation['id']}"

    nothing = client.patch(url, json={"status": "Pending"})
    assert nothing.status_code == 400
    assert nothing.json()["detail"] == "No valid fields to update"

    option_only = client.patch(url, json={"status": "Shipped", "selected_option": 1})
    assert option_only.status_code == 200
    assert option_only.json()["status"] == "Pending"
    assert option_only.json()["selected_option"] == 1


def test_rejected_quotation_cannot_be_approved(client, magic_link, quotation):
    token = magic_link()["token"]
    url = f"/api/c/{token}/quotations/{quotation['id']}"

    assert client.patch(url, json={"status": "Rejected"}).status_code == 200
    assert client.patch(url, json={"status": "Approved"}).status_code == 400


def test_link_bound_to_quotation_hides_others(client, client_headers, magic_link, quotation):
    other = client.post(
        CLIENT_QUOTATIONS,
        json={"product_name": "Tote bags", "quantity": 50, "destination_country": "GH"},
        headers=client_headers,
    ).json()
    token = magic_link(quotation_id=quotation["id"])["token"]

    listed = client.get(f"/api/c/{token}/quotations").json()
    assert [q["id"] for q in listed] == [quotation["id"]]
    assert client.get(f"/api/c/{token}/quotations/{other['id']}").status_code == 404
