# sourcing/routers/payments.py
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlmodel import Session

from sourcing.core.auth import TenantMember, require_client, require_staff
from sourcing.database import get_session
from sourcing.repositories.address_repo import AddressRepository
from sourcing.repositories.order_repo import OrderRepository
from sourcing.repositories.payment_repo import PaymentRepository
from sourcing.repositories.shipment_repo import ShipmentRepository
from sourcing.schemas.payment import (
    InvoiceRead,
    PaymentMetrics,
    PaymentRead,
    PaymentStatusResult,
    PaymentStatusUpdate,
)
from sourcing.services.payment_service import PaymentService
from sourcing.services.shipment_service import ShipmentService

client_router = APIRouter(prefix="/client/{slug}/payments", tags=["Payments"])
store_router = APIRouter(prefix="/store/{slug}/payments", tags=["Store Payments"])

shipment_service = ShipmentService(
    ShipmentRepository(), OrderRepository(), AddressRepository()
)
service = PaymentService(PaymentRepository(), shipment_service)


# -------- Client endpoints --------


@client_router.get("", response_model=list[PaymentRead])
def list_my_payments(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
    skip: int = 0,
    limit: int = 50,
):
    return service.list_user_payments(
        session, member.company.id, member.profile.id, skip, limit
    )


@client_router.get("/{payment_id}", response_model=PaymentRead)
def get_my_payment(
    payment_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    return service.get_user_payment(
        session, member.company.id, member.profile.id, payment_id
    )


@client_router.post(
    "/{payment_id}/proof",
    response_model=PaymentRead,
    summary="Upload a payment proof (image or PDF)",
)
def upload_payment_proof(
    payment_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Attach a transfer receipt to the payment.

    - Accepts JPEG, PNG, GIF, WEBP, PDF up to 10MB.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    return service.upload_proof(
        session=session,
        company_id=member.company.id,
        user_id=member.profile.id,
        payment_id=payment_id,
        content_type=file.content_type,
        file_bytes=file_bytes,
    )


@client_router.get("/{payment_id}/invoice", response_model=InvoiceRead)
def get_invoice(
    payment_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Invoice data for an accepted payment; 400 for any other status.
    """
    return service.get_invoice(session, member.company, member.profile.id, payment_id)


# -------- Staff endpoints --------


@store_router.get("", response_model=list[PaymentRead])
def list_company_payments(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
    status: str | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List payments, optionally filtered by display status
    (pending, approved, rejected, processing, completed, failed).
    """
    return service.list_company_payments(session, member.company.id, status, skip, limit)


@store_router.get("/metrics", response_model=PaymentMetrics)
def get_payment_metrics(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    return service.get_metrics(session, member.company.id)


@store_router.get("/{payment_id}", response_model=PaymentRead)
def get_company_payment(
    payment_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    return service.get_company_payment(session, member.company.id, payment_id)


@store_router.patch("/{payment_id}/status", response_model=PaymentStatusResult)
def update_payment_status(
    payment_id: uuid.UUID,
    payload: PaymentStatusUpdate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Change a payment's status.

      pending    -> processing, approved, rejected, failed

      processing -> approved, rejected, completed, failed

      approved   -> completed

    Approving creates the shipment for the payment.
    Returns the stored status and its display label.
    """
    return service.update_status(session, member.company.id, payment_id, payload)
