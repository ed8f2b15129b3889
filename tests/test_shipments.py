from datetime import date, datetime, timezone

import pytest

from sourcing.models.shipment import Shipment

STORE_SHIPMENTS = "/api/store/acme/shipments"


@pytest.fixture
def shipment(session, company, client_profile):
    shipment = Shipment(
        company_id=company.id,
        user_id=client_profile.id,
        tracking_number="SS-ABC123-WXYZ",
        status="processing",
        location="Shenzhen",
        images_urls=["a.jpg"],
        estimated_delivery=date(2025, 4, 1),
    )
    session.add(shipment)
    session.commit()
    session.refresh(shipment)
    return shipment


def _image(name="b.jpg", data=b"\xff\xd8\xff image", content_type="image/jpeg"):
    return ("files", (name, data, content_type))


def test_append_then_delete_media(client, staff_headers, shipment, fake_storage):
    uploaded = client.post(
        f"{STORE_SHIPMENTS}/{shipment.id}/media/images",
        files=[_image()],
        headers=staff_headers,
    )

    assert uploaded.status_code == 200
    images = uploaded.json()["images_urls"]
    assert len(images) == 2
    assert images[0] == "a.jpg"
    new_url = images[1]
    assert f"shipment_updates/shipment-{shipment.id}/images/" in new_url
    assert new_url.endswith(".jpg")

    removed = client.request(
        "DELETE",
        f"{STORE_SHIPMENTS}/{shipment.id}/media",
        json={"kind": "images", "url": "a.jpg"},
        headers=staff_headers,
    )

    assert removed.status_code == 200
    assert removed.json()["images_urls"] == [new_url]
    assert fake_storage["deleted"] == [("shipment_updates", "a.jpg")]


def test_multiple_files_are_appended_in_one_write(
    client, staff_headers, shipment, fake_storage
):
    resp = client.post(
        f"{STORE_SHIPMENTS}/{shipment.id}/media/videos",
        files=[
            ("files", ("one.mp4", b"video-1", "video/mp4")),
            ("files", ("two.mov", b"video-2", "video/quicktime")),
        ],
        headers=staff_headers,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["images_urls"] == ["a.jpg"]
    assert len(body["videos_urls"]) == 2
    assert sorted(u.rsplit(".", 1)[1] for u in body["videos_urls"]) == ["mov", "mp4"]
    assert len(fake_storage["uploaded"]) == 2


def test_unsupported_media_type_is_rejected(client, staff_headers, shipment, fake_storage):
    resp = client.post(
        f"{STORE_SHIPMENTS}/{shipment.id}/media/images",
        files=[_image("doc.pdf", b"%PDF", "application/pdf")],
        headers=staff_headers,
    )

    assert resp.status_code == 400
    assert fake_storage["uploaded"] == []


def test_oversized_image_is_rejected(client, staff_headers, shipment, fake_storage):
    too_big = b"x" * (10 * 1024 * 1024 + 1)
    resp = client.post(
        f"{STORE_SHIPMENTS}/{shipment.id}/media/images",
        files=[_image(data=too_big)],
        headers=staff_headers,
    )

    assert resp.status_code == 413


def test_storage_failure_leaves_media_unchanged(
    client, session, staff_headers, shipment, monkeypatch
):
    def broken_upload(*args, **kwargs):
        raise RuntimeError("storage down")

    monkeypatch.setattr(
        "sourcing.services.shipment_service.upload_to_storage", broken_upload
    )

    resp = client.post(
        f"{STORE_SHIPMENTS}/{shipment.id}/media/images",
        files=[_image()],
        headers=staff_headers,
    )

    assert resp.status_code == 502
    session.refresh(shipment)
    assert shipment.images_urls == ["a.jpg"]


def test_deleting_unknown_url_is_404(client, staff_headers, shipment, fake_storage):
    resp = client.request(
        "DELETE",
        f"{STORE_SHIPMENTS}/{shipment.id}/media",
        json={"kind": "videos", "url": "a.jpg"},
        headers=staff_headers,
    )

    assert resp.status_code == 404
    assert fake_storage["deleted"] == []


def test_delivered_without_date_stamps_today(client, staff_headers, shipment):
    resp = client.patch(
        f"{STORE_SHIPMENTS}/{shipment.id}",
        json={"status": "delivered"},
        headers=staff_headers,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "delivered"
    assert body["delivered_at"] == datetime.now(timezone.utc).date().isoformat()
    assert body["estimated_delivery"] is None


def test_any_status_may_follow_any_other(client, staff_headers, shipment):
    for status in ("delivered", "In Transit", "processing"):
        resp = client.patch(
            f"{STORE_SHIPMENTS}/{shipment.id}",
            json={"status": status},
            headers=staff_headers,
        )
        assert resp.status_code == 200

    assert resp.json()["status"] == "processing"
    assert resp.json()["delivered_at"] is None
    assert resp.json()["estimated_delivery"] == "2025-04-01"


def test_custom_status_and_location(client, staff_headers, shipment):
    resp = client.patch(
        f"{STORE_SHIPMENTS}/{shipment.id}",
        json={"status": "custom", "custom_status": "Held at customs", "location": "Lagos"},
        headers=staff_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "Held at customs"
    assert resp.json()["location"] == "Lagos"


def test_custom_status_without_text_is_400(client, staff_headers, shipment):
    resp = client.patch(
        f"{STORE_SHIPMENTS}/{shipment.id}",
        json={"status": "custom"},
        headers=staff_headers,
    )

    assert resp.status_code == 400


def test_client_sees_own_shipments(client, client_headers, shipment):
    resp = client.get("/api/client/acme/shipments", headers=client_headers)

    assert resp.status_code == 200
    assert [s["tracking_number"] for s in resp.json()] == ["SS-ABC123-WXYZ"]


def test_shipment_of_other_company_is_404(
    client, other_company, make_profile, headers_for, shipment
):
    other_staff = make_profile(other_company, "owner", "owner@example.com")

    resp = client.get(
        f"/api/store/other/shipments/{shipment.id}", headers=headers_for(other_staff)
    )

    assert resp.status_code == 404


def test_storage_failure_on_delete_leaves_media_unchanged(
    client, session, staff_headers, shipment, monkeypatch
):
    def broken_delete(*args, **kwargs):
        raise RuntimeError("storage down")

    monkeypatch.setattr(
        "sourcing.services.shipment_service.delete_public_url", broken_delete
    )

    resp = client.request(
        "DELETE",
        f"{STORE_SHIPMENTS}/{shipment.id}/media",
        json={"kind": "images", "url": "a.jpg"},
        headers=staff_headers,
    )

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to delete media"
    session.refresh(shipment)
    assert shipment.images_urls == ["a.jpg"]
