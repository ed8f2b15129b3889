# sourcing/routers/addresses.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from sourcing.core.auth import TenantMember, require_client
from sourcing.database import get_session
from sourcing.repositories.address_repo import AddressRepository
from sourcing.schemas.address import AddressRead, AddressUpsert
from sourcing.services.address_service import AddressService

router = APIRouter(prefix="/client/{slug}/addresses", tags=["Addresses"])

service = AddressService(AddressRepository())


@router.get("", response_model=list[AddressRead])
def list_my_addresses(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Saved delivery addresses, default first, then newest.
    """
    return service.list_addresses(session, member.company.id, member.profile.id)


@router.put("", response_model=AddressRead)
def upsert_address(
    payload: AddressUpsert,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Create (no id) or update (id) an address.

    Marking it default clears the previous default.
    """
    return service.upsert_address(session, member.company.id, member.profile.id, payload)
