# sourcing/services/order_service.py
import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.core.config import get_settings
from sourcing.core.references import reference_code, unique_code
from sourcing.models.order import Order, ShippingReceiver
from sourcing.models.quotation import Quotation
from sourcing.repositories.order_repo import OrderRepository
from sourcing.schemas.order import (
    OrderRead,
    OrderStatusUpdate,
    ReceiverInfoCreate,
    ReceiverInfoUpdate,
)
from sourcing.services import lifecycle

logger = logging.getLogger(__name__)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Client views with the receiver-edit affordance
      - Receiver submission (Waiting for information -> Processing)
      - Receiver edits inside the edit window, re-checked on every write
      - Staff status transitions (Processing -> Shipped -> Delivered)
      - Order creation for checkout and approved quotations
    """

    def __init__(self, order_repo: OrderRepository):
        self.order_repo = order_repo

    @property
    def edit_window(self) -> timedelta:
        return timedelta(hours=get_settings().ORDER_EDIT_WINDOW_HOURS)

    # -------- Read models --------

    def to_read(self, order: Order, now: datetime | None = None) -> OrderRead:
        now = now or datetime.now(timezone.utc)
        editable = lifecycle.can_edit_receiver(
            order.status, order.created_at, order.order_date, now, self.edit_window
        )
        deadline = None
        if order.status == lifecycle.ORDER_PROCESSING:
            deadline = lifecycle.receiver_edit_deadline(
                order.created_at, order.order_date, self.edit_window
            )

        return OrderRead(
            id=order.id,
            reference=order.reference,
            quotation_id=order.quotation_id,
            product_name=order.product_name,
            product_image_url=order.product_image_url,
            quantity=order.quantity,
            amount=order.amount,
            currency=order.currency,
            status=order.status,
            destination_country=order.destination_country,
            receiver_name=order.receiver_name,
            receiver_phone=order.receiver_phone,
            receiver_address=order.receiver_address,
            order_date=order.order_date,
            created_at=order.created_at,
            can_edit_receiver=editable,
            edit_deadline=deadline,
            notice=lifecycle.order_notice(order.status),
        )

    # -------- Creation (no commit; callers own the transaction) --------

    def new_reference(self, session: Session) -> str:
        return unique_code(
            lambda: reference_code("ORD"),
            lambda code: self.order_repo.reference_exists(session, code),
        )

    def create_order(self, session: Session, order: Order) -> Order:
        if not order.reference:
            order.reference = self.new_reference(session)
        return self.order_repo.create_order(session, order)

    def create_from_quotation(self, session: Session, quotation: Quotation) -> Order:
        """
        Order for an approved quotation. Receiver details are unknown at
        this point, so it starts as "Waiting for information".

        Idempotent: an existing order for the quotation is returned.
        """
        existing = self.order_repo.get_by_quotation(session, quotation.id)
        if existing:
            return existing

        order = Order(
            company_id=quotation.company_id,
            user_id=quotation.user_id,
            reference=self.new_reference(session),
            quotation_id=quotation.id,
            product_name=quotation.product_name,
            product_image_url=quotation.image_urls[0] if quotation.image_urls else None,
            quantity=quotation.quantity,
            amount=quotation.total_price or 0.0,
            status=lifecycle.ORDER_WAITING,
            destination_country=quotation.destination_country,
        )
        order = self.order_repo.create_order(session, order)
        logger.info(
            "Created order %s from quotation %s", order.reference, quotation.quotation_code
        )
        return order

    # -------- Client operations --------

    def _get_user_order(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> Order:
        order = self.order_repo.get_for_company(session, company_id, order_id)
        if not order or order.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return order

    def list_user_orders(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        now = datetime.now(timezone.utc)
        orders = self.order_repo.list_for_user(session, company_id, user_id, skip, limit)
        return [self.to_read(o, now) for o in orders]

    def get_user_order(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> OrderRead:
        return self.to_read(self._get_user_order(session, company_id, user_id, order_id))

    def submit_receiver_info(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
        payload: ReceiverInfoCreate,
    ) -> OrderRead:
        """
        First receiver submission; moves the order to Processing.

        - 400 unless the order is "Waiting for information".
        """
        order = self._get_user_order(session, company_id, user_id, order_id)

        if not lifecycle.can_submit_receiver_info(order.status):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Receiver information was already provided for this order",
            )

        self._apply_receiver(session, order, payload.model_dump())
        order.status = lifecycle.ORDER_PROCESSING
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)
        return self.to_read(order)

    def update_receiver(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
        payload: ReceiverInfoUpdate,
        now: datetime | None = None,
    ) -> OrderRead:
        """
        Edit receiver name/phone/address.

        Allowed only while Processing and strictly inside the edit window.
        The payload schema cannot carry destination_country.
        """
        now = now or datetime.now(timezone.utc)
        order = self._get_user_order(session, company_id, user_id, order_id)

        if order.status in lifecycle.ORDER_READ_ONLY_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=lifecycle.CONTACT_SUPPORT_NOTICE,
            )

        if not lifecycle.can_edit_receiver(
            order.status, order.created_at, order.order_date, now, self.edit_window
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    "Receiver details can only be changed while the order is "
                    f"Processing and within {get_settings().ORDER_EDIT_WINDOW_HOURS} "
                    "hours of creation"
                ),
            )

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        self._apply_receiver(session, order, changes)
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)
        return self.to_read(order, now)

    def _apply_receiver(self, session: Session, order: Order, changes: dict) -> None:
        for field in lifecycle.ORDER_RECEIVER_FIELDS:
            if field in changes:
                setattr(order, field, changes[field])

        self.order_repo.add_receiver(
            session,
            ShippingReceiver(
                company_id=order.company_id,
                order_id=order.id,
                name=order.receiver_name or "",
                phone=order.receiver_phone or "",
                address=order.receiver_address or "",
            ),
        )

    # -------- Staff operations --------

    def list_company_orders(
        self,
        session: Session,
        company_id: uuid.UUID,
        status_filter: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        now = datetime.now(timezone.utc)
        orders = self.order_repo.list_for_company(
            session, company_id, status_filter, skip, limit
        )
        return [self.to_read(o, now) for o in orders]

    def update_status(
        self,
        session: Session,
        company_id: uuid.UUID,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderRead:
        """
        Staff status update with the order state machine:

          Waiting for information -> Processing
          Processing              -> Shipped
          Shipped                 -> Delivered
          Delivered               -> (no change)

        Skipping Processing or moving backwards raises 400.
        """
        order = self.order_repo.get_for_company(session, company_id, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )

        current = order.status
        new = payload.status

        if current == new:
            return self.to_read(order)

        if not lifecycle.is_allowed_order_transition(current, new):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status transition: {current} -> {new}",
            )

        order.status = new
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)
        logger.info("Order %s: %s -> %s", order.reference, current, new)
        return self.to_read(order)
