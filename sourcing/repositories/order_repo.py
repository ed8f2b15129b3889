# sourcing/repositories/order_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.order import Order, ShippingReceiver


class OrderRepository:
    """
    Data access layer for orders and shipping_receivers.

    NOTE:
      - No commits here; order creation is part of multi-step transactions
        (checkout, quotation approval). The service calls session.commit().
    """

    # ---- Orders ----

    def list_for_user(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.company_id == company_id, Order.user_id == user_id)
            .order_by(Order.order_date.desc(), Order.created_at.desc())
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
    ) -> list[Order]:
        stmt = select(Order).where(Order.company_id == company_id)
        if status:
            stmt = stmt.where(Order.status == status)
        stmt = (
            stmt.order_by(Order.order_date.desc(), Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def get_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> Order | None:
        stmt = select(Order).where(Order.id == order_id, Order.company_id == company_id)
        return session.exec(stmt).first()

    def get_by_quotation(self, session: Session, quotation_id: uuid.UUID) -> Order | None:
        stmt = select(Order).where(Order.quotation_id == quotation_id)
        return session.exec(stmt).first()

    def reference_exists(self, session: Session, reference: str) -> bool:
        stmt = select(Order.id).where(Order.reference == reference)
        return session.exec(stmt).first() is not None

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        session.refresh(order)
        return order

    # ---- Receivers ----

    def add_receiver(self, session: Session, receiver: ShippingReceiver) -> ShippingReceiver:
        session.add(receiver)
        session.flush()
        return receiver
