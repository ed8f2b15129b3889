# sourcing/routers/magic_links.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from sourcing.core.auth import TenantMember, require_staff
from sourcing.database import get_session
from sourcing.repositories.company_repo import CompanyRepository
from sourcing.repositories.magic_link_repo import MagicLinkRepository
from sourcing.repositories.quotation_repo import QuotationRepository
from sourcing.schemas.magic_link import MagicLinkCreate, MagicLinkCreated, MagicLinkRead
from sourcing.services.magic_link_service import MagicLinkService

router = APIRouter(prefix="/store/{slug}", tags=["Magic Links"])

service = MagicLinkService(MagicLinkRepository(), CompanyRepository(), QuotationRepository())


@router.post(
    "/clients/{client_id}/magic-links",
    response_model=MagicLinkCreated,
    status_code=status.HTTP_201_CREATED,
)
def generate_magic_link(
    client_id: uuid.UUID,
    payload: MagicLinkCreate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Generate a portal link for a client.

    - The raw token is only returned here.
    - Defaults: scopes view/pay/track, 14 days, unlimited uses.
    - send_email=True also mails the link to the client.
    """
    return service.generate(session, member.company, client_id, payload)


@router.get("/magic-links", response_model=list[MagicLinkRead])
def list_magic_links(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
    client_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
):
    return service.list_links(session, member.company.id, client_id, skip, limit)


@router.post("/magic-links/{link_id}/revoke", response_model=MagicLinkRead)
def revoke_magic_link(
    link_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Revoke a link. Revoking twice keeps the first revocation time.
    """
    return service.revoke(session, member.company.id, link_id)
