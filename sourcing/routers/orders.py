# sourcing/routers/orders.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from sourcing.core.auth import TenantMember, require_client, require_staff
from sourcing.database import get_session
from sourcing.repositories.order_repo import OrderRepository
from sourcing.schemas.order import (
    OrderRead,
    OrderStatus,
    OrderStatusUpdate,
    ReceiverInfoCreate,
    ReceiverInfoUpdate,
)
from sourcing.services.order_service import OrderService

client_router = APIRouter(prefix="/client/{slug}/orders", tags=["Orders"])
store_router = APIRouter(prefix="/store/{slug}/orders", tags=["Store Orders"])

service = OrderService(OrderRepository())


# -------- Client endpoints --------


@client_router.get("", response_model=list[OrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
    skip: int = 0,
    limit: int = 50,
):
    """
    List the client's orders, newest first.

    Each order carries `can_edit_receiver`; Shipped/Delivered orders
    carry a contact-support notice instead.
    """
    return service.list_user_orders(
        session, member.company.id, member.profile.id, skip, limit
    )


@client_router.get("/{order_id}", response_model=OrderRead)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    return service.get_user_order(session, member.company.id, member.profile.id, order_id)


@client_router.post("/{order_id}/receiver", response_model=OrderRead)
def submit_receiver_info(
    order_id: uuid.UUID,
    payload: ReceiverInfoCreate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Provide receiver details for an order waiting for information.
    The order moves to Processing.
    """
    return service.submit_receiver_info(
        session, member.company.id, member.profile.id, order_id, payload
    )


@client_router.patch("/{order_id}/receiver", response_model=OrderRead)
def update_receiver(
    order_id: uuid.UUID,
    payload: ReceiverInfoUpdate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Edit receiver name/phone/address.

    - Only while Processing and within the edit window.
    - destination_country is rejected by the payload schema (422).
    """
    return service.update_receiver(
        session, member.company.id, member.profile.id, order_id, payload
    )


# -------- Staff endpoints --------


@store_router.get("", response_model=list[OrderRead])
def list_company_orders(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
    status: OrderStatus | None = None,
    skip: int = 0,
    limit: int = 50,
):
    return service.list_company_orders(session, member.company.id, status, skip, limit)


@store_router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Update order status with the order state machine:

      Waiting for information -> Processing

      Processing -> Shipped

      Shipped -> Delivered

      Delivered -> (no change)
    """
    return service.update_status(session, member.company.id, order_id, payload)
