# sourcing/services/address_service.py
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.models.address import ClientAddress
from sourcing.repositories.address_repo import AddressRepository
from sourcing.schemas.address import AddressUpsert

_EDITABLE_FIELDS = (
    "full_name",
    "company_name",
    "address_line_1",
    "address_line_2",
    "city",
    "country",
    "phone",
)


def format_address(address: ClientAddress) -> str:
    """Single-line receiver address: lines, city, country."""
    parts = [
        address.address_line_1,
        address.address_line_2,
        address.city,
        address.country,
    ]
    return ", ".join(p for p in parts if p)


class AddressService:
    """
    Delivery addresses of a client.

    Rules:
      - the first address of a client becomes the default
      - saving an address with is_default=True clears the previous default,
        so at most one default exists per client and company
    """

    def __init__(self, repo: AddressRepository):
        self.repo = repo

    def list_addresses(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> list[ClientAddress]:
        return self.repo.list_for_user(session, company_id, user_id)

    def get_address(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> ClientAddress:
        address = self.repo.get_for_user(session, company_id, user_id, address_id)
        if not address:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Address not found",
            )
        return address

    def upsert_address(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        payload: AddressUpsert,
        commit: bool = True,
    ) -> ClientAddress:
        """
        Insert a new address or update an existing one (payload.id).

        commit=False leaves the transaction open for checkout.
        """
        existing = self.repo.list_for_user(session, company_id, user_id)

        if payload.id is not None:
            address = self.get_address(session, company_id, user_id, payload.id)
        else:
            address = ClientAddress(
                company_id=company_id,
                user_id=user_id,
                full_name=payload.full_name,
                address_line_1=payload.address_line_1,
                city=payload.city,
                country=payload.country,
            )

        for field in _EDITABLE_FIELDS:
            setattr(address, field, getattr(payload, field))

        make_default = payload.is_default or not existing
        if make_default:
            for other in existing:
                if other.id != address.id and other.is_default:
                    other.is_default = False
                    session.add(other)
            address.is_default = True

        address = self.repo.save(session, address)

        if commit:
            session.commit()
            session.refresh(address)
        return address
