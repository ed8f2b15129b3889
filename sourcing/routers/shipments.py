# sourcing/routers/shipments.py
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlmodel import Session

from sourcing.core.auth import TenantMember, require_client, require_staff
from sourcing.database import get_session
from sourcing.repositories.address_repo import AddressRepository
from sourcing.repositories.order_repo import OrderRepository
from sourcing.repositories.shipment_repo import ShipmentRepository
from sourcing.schemas.shipment import (
    MediaKind,
    ShipmentMediaDelete,
    ShipmentRead,
    ShipmentUpdate,
)
from sourcing.services.shipment_service import ShipmentService

client_router = APIRouter(prefix="/client/{slug}/shipments", tags=["Shipments"])
store_router = APIRouter(prefix="/store/{slug}/shipments", tags=["Store Shipments"])

service = ShipmentService(ShipmentRepository(), OrderRepository(), AddressRepository())


# -------- Client endpoints --------


@client_router.get("", response_model=list[ShipmentRead])
def list_my_shipments(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
    skip: int = 0,
    limit: int = 50,
):
    return service.list_user_shipments(
        session, member.company.id, member.profile.id, skip, limit
    )


@client_router.get("/{shipment_id}", response_model=ShipmentRead)
def get_my_shipment(
    shipment_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    return service.get_user_shipment(
        session, member.company.id, member.profile.id, shipment_id
    )


# -------- Staff endpoints --------


@store_router.get("", response_model=list[ShipmentRead])
def list_company_shipments(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
    status: str | None = None,
    skip: int = 0,
    limit: int = 50,
):
    return service.list_company_shipments(session, member.company.id, status, skip, limit)


@store_router.get("/{shipment_id}", response_model=ShipmentRead)
def get_company_shipment(
    shipment_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    return service.get_company_shipment(session, member.company.id, shipment_id)


@store_router.patch("/{shipment_id}", response_model=ShipmentRead)
def update_shipment(
    shipment_id: uuid.UUID,
    payload: ShipmentUpdate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Edit status, location and dates. Any status may follow any other;
    use status="custom" with custom_status for free text.
    """
    return service.update_shipment(session, member.company.id, shipment_id, payload)


@store_router.post(
    "/{shipment_id}/media/{kind}",
    response_model=ShipmentRead,
    summary="Upload one or more images or videos for a shipment",
)
def upload_shipment_media(
    shipment_id: uuid.UUID,
    kind: MediaKind,
    files: list[UploadFile] = File(...),
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Upload files to the shipment.

    - images: JPEG, PNG, GIF, WEBP up to 10MB each
    - videos: MP4, WEBM, MOV up to 50MB each
    - New URLs are appended after the existing ones.
    """
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No files uploaded",
        )

    payload: list[tuple[str, bytes]] = []
    for f in files:
        if not f.content_type:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing content-type for one of the uploaded files",
            )
        payload.append((f.content_type, f.file.read()))

    return service.add_media(
        session=session,
        company_id=member.company.id,
        shipment_id=shipment_id,
        kind=kind,
        files=payload,
    )


@store_router.delete("/{shipment_id}/media", response_model=ShipmentRead)
def delete_shipment_media(
    shipment_id: uuid.UUID,
    payload: ShipmentMediaDelete,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Remove one image or video URL and its Storage object.
    """
    return service.delete_media(
        session, member.company.id, shipment_id, payload.kind, payload.url
    )
