# sourcing/repositories/address_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.address import ClientAddress


class AddressRepository:
    """
    Data access layer for client_addresses.

    No commits: address writes also happen inside checkout.
    """

    def list_for_user(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> list[ClientAddress]:
        stmt = (
            select(ClientAddress)
            .where(
                ClientAddress.company_id == company_id,
                ClientAddress.user_id == user_id,
            )
            .order_by(ClientAddress.is_default.desc(), ClientAddress.created_at.desc())
        )
        return session.exec(stmt).all()

    def get_for_user(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> ClientAddress | None:
        stmt = select(ClientAddress).where(
            ClientAddress.id == address_id,
            ClientAddress.company_id == company_id,
            ClientAddress.user_id == user_id,
        )
        return session.exec(stmt).first()

    def get_by_id(self, session: Session, address_id: uuid.UUID) -> ClientAddress | None:
        return session.get(ClientAddress, address_id)

    def save(self, session: Session, address: ClientAddress) -> ClientAddress:
        session.add(address)
        session.flush()
        session.refresh(address)
        return address
