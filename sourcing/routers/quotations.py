# sourcing/routers/quotations.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from sourcing.core.auth import TenantMember, require_client, require_staff
from sourcing.database import get_session
from sourcing.repositories.order_repo import OrderRepository
from sourcing.repositories.quotation_repo import QuotationRepository
from sourcing.schemas.quotation import (
    QuotationCreate,
    QuotationPriceUpdate,
    QuotationRead,
    QuotationStatus,
)
from sourcing.services.order_service import OrderService
from sourcing.services.quotation_service import QuotationService

client_router = APIRouter(prefix="/client/{slug}/quotations", tags=["Quotations"])
store_router = APIRouter(prefix="/store/{slug}/quotations", tags=["Store Quotations"])

service = QuotationService(QuotationRepository(), OrderService(OrderRepository()))


# -------- Client endpoints --------


@client_router.post(
    "",
    response_model=QuotationRead,
    status_code=status.HTTP_201_CREATED,
)
def request_quotation(
    payload: QuotationCreate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Submit a quotation request. It starts as Pending until staff price it.
    """
    return service.create_quotation(session, member.company.id, member.profile.id, payload)


@client_router.get("", response_model=list[QuotationRead])
def list_my_quotations(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
    skip: int = 0,
    limit: int = 50,
):
    return service.list_user_quotations(
        session, member.company.id, member.profile.id, skip, limit
    )


@client_router.get("/{quotation_id}", response_model=QuotationRead)
def get_my_quotation(
    quotation_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    return service.get_user_quotation(
        session, member.company.id, member.profile.id, quotation_id
    )


# -------- Staff endpoints --------


@store_router.get("", response_model=list[QuotationRead])
def list_company_quotations(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
    status: QuotationStatus | None = None,
    skip: int = 0,
    limit: int = 50,
):
    return service.list_company_quotations(
        session, member.company.id, status, skip, limit
    )


@store_router.patch("/{quotation_id}/price", response_model=QuotationRead)
def set_quotation_price(
    quotation_id: uuid.UUID,
    payload: QuotationPriceUpdate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Set the quoted price of a pending quotation.
    """
    return service.set_price(session, member.company.id, quotation_id, payload)
