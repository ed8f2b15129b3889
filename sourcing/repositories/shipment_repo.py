# sourcing/repositories/shipment_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.shipment import Shipment


class ShipmentRepository:
    """
    Data access layer for the shipping table.
    """

    def list_for_user(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Shipment]:
        stmt = (
            select(Shipment)
            .where(Shipment.company_id == company_id, Shipment.user_id == user_id)
            .order_by(Shipment.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def list_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Shipment]:
        stmt = select(Shipment).where(Shipment.company_id == company_id)
        if status:
            stmt = stmt.where(Shipment.status == status)
        stmt = stmt.order_by(Shipment.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def get_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        shipment_id: uuid.UUID,
        for_update: bool = False,
    ) -> Shipment | None:
        """
        With for_update=True the row is locked (SELECT ... FOR UPDATE)
        until the surrounding transaction ends.
        """
        stmt = select(Shipment).where(
            Shipment.id == shipment_id,
            Shipment.company_id == company_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
            # Bypass the identity map so a concurrent writer's change is seen
            stmt = stmt.execution_options(populate_existing=True)
        return session.exec(stmt).first()

    def get_by_payment(self, session: Session, payment_id: uuid.UUID) -> Shipment | None:
        stmt = select(Shipment).where(Shipment.payment_id == payment_id)
        return session.exec(stmt).first()

    def tracking_number_exists(self, session: Session, tracking_number: str) -> bool:
        stmt = select(Shipment.id).where(Shipment.tracking_number == tracking_number)
        return session.exec(stmt).first() is not None

    def save(self, session: Session, shipment: Shipment) -> Shipment:
        session.add(shipment)
        session.flush()
        session.refresh(shipment)
        return shipment
