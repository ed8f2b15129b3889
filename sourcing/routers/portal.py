# sourcing/routers/portal.py
"""
Client portal reached through a magic link: /c/{token}/...

No JWT here; the token in the path is the credential. Every route
re-checks the token (403 with the failure reason) and its scope:
  - quotations -> "view"
  - payments   -> "pay"
  - shipping   -> "track"
Only /validate counts as a use of the link.
"""
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from sourcing.database import get_session
from sourcing.models.magic_link import MagicLink
from sourcing.repositories.address_repo import AddressRepository
from sourcing.repositories.company_repo import CompanyRepository
from sourcing.repositories.magic_link_repo import MagicLinkRepository
from sourcing.repositories.order_repo import OrderRepository
from sourcing.repositories.payment_repo import PaymentRepository
from sourcing.repositories.quotation_repo import QuotationRepository
from sourcing.repositories.shipment_repo import ShipmentRepository
from sourcing.schemas.magic_link import MagicLinkSession
from sourcing.schemas.payment import PaymentRead
from sourcing.schemas.quotation import QuotationClientUpdate, QuotationRead
from sourcing.schemas.shipment import ShipmentRead
from sourcing.services.magic_link_service import MagicLinkService
from sourcing.services.order_service import OrderService
from sourcing.services.payment_service import PaymentService
from sourcing.services.quotation_service import QuotationService
from sourcing.services.shipment_service import ShipmentService

router = APIRouter(prefix="/c/{token}", tags=["Client Portal"])

quotation_repo = QuotationRepository()
link_service = MagicLinkService(MagicLinkRepository(), CompanyRepository(), quotation_repo)
quotation_service = QuotationService(quotation_repo, OrderService(OrderRepository()))
shipment_service = ShipmentService(
    ShipmentRepository(), OrderRepository(), AddressRepository()
)
payment_service = PaymentService(PaymentRepository(), shipment_service)


def get_magic_link(token: str, session: Session = Depends(get_session)) -> MagicLink:
    """Resolve the `{token}` path parameter without counting a use."""
    return link_service.resolve(session, token)


@router.get("/validate", response_model=MagicLinkSession)
def validate_link(
    token: str,
    session: Session = Depends(get_session),
):
    """
    Check the token and record one use.

    403 reasons: Invalid token, Token expired, Token revoked,
    Token max uses reached.
    """
    return link_service.validate(session, token)


# -------- Quotations (scope: view) --------


@router.get("/quotations", response_model=list[QuotationRead])
def list_portal_quotations(
    session: Session = Depends(get_session),
    link: MagicLink = Depends(get_magic_link),
):
    link_service.require_scope(link, "view")
    quotations = quotation_service.list_user_quotations(
        session, link.company_id, link.client_id
    )
    if link.quotation_id is not None:
        quotations = [q for q in quotations if q.id == link.quotation_id]
    return quotations


@router.get("/quotations/{quotation_id}", response_model=QuotationRead)
def get_portal_quotation(
    quotation_id: uuid.UUID,
    session: Session = Depends(get_session),
    link: MagicLink = Depends(get_magic_link),
):
    link_service.require_scope(link, "view")
    link_service.check_quotation(link, quotation_id)
    return quotation_service.get_user_quotation(
        session, link.company_id, link.client_id, quotation_id
    )


@router.patch("/quotations/{quotation_id}", response_model=QuotationRead)
def update_portal_quotation(
    quotation_id: uuid.UUID,
    payload: QuotationClientUpdate,
    session: Session = Depends(get_session),
    link: MagicLink = Depends(get_magic_link),
):
    """
    Approve, confirm or reject a quotation and/or pick a price option.

    Other status values are ignored; 400 when nothing applicable remains.
    Approval creates the order waiting for receiver details.
    """
    link_service.require_scope(link, "view")
    link_service.check_quotation(link, quotation_id)
    return quotation_service.client_update(
        session, link.company_id, link.client_id, quotation_id, payload
    )


# -------- Payments (scope: pay) --------


@router.get("/payments", response_model=list[PaymentRead])
def list_portal_payments(
    session: Session = Depends(get_session),
    link: MagicLink = Depends(get_magic_link),
):
    link_service.require_scope(link, "pay")
    return payment_service.list_user_payments(session, link.company_id, link.client_id)


# -------- Shipping (scope: track) --------


@router.get("/shipping", response_model=list[ShipmentRead])
def list_portal_shipments(
    session: Session = Depends(get_session),
    link: MagicLink = Depends(get_magic_link),
):
    link_service.require_scope(link, "track")
    return shipment_service.list_user_shipments(session, link.company_id, link.client_id)


@router.get("/shipping/{shipment_id}", response_model=ShipmentRead)
def get_portal_shipment(
    shipment_id: uuid.UUID,
    session: Session = Depends(get_session),
    link: MagicLink = Depends(get_magic_link),
):
    link_service.require_scope(link, "track")
    return shipment_service.get_user_shipment(
        session, link.company_id, link.client_id, shipment_id
    )
