# sourcing/routers/cart.py
import uuid

from fastapi import APIRouter, Depends, Header
from sqlmodel import Session

from sourcing.core.auth import TenantMember, require_client
from sourcing.database import get_session
from sourcing.repositories.address_repo import AddressRepository
from sourcing.repositories.cart_repo import CartRepository
from sourcing.repositories.order_repo import OrderRepository
from sourcing.repositories.payment_repo import PaymentRepository
from sourcing.repositories.product_repo import ProductRepository
from sourcing.schemas.cart import CartSummary, CartItemCreate, CartItemUpdate
from sourcing.schemas.checkout import CheckoutRequest, CheckoutResult
from sourcing.services.address_service import AddressService
from sourcing.services.cart_service import CartService
from sourcing.services.checkout_service import CheckoutService
from sourcing.services.order_service import OrderService

router = APIRouter(prefix="/client/{slug}/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)
checkout_service = CheckoutService(
    cart_repo,
    product_repo,
    PaymentRepository(),
    AddressService(AddressRepository()),
    OrderService(OrderRepository()),
)


@router.get("", response_model=CartSummary)
def get_my_cart(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Get the current client's cart summary in this company.

    Auth:
      - Only active clients of the company can access.
    """
    return service.get_cart_summary(session, member.company.id, member.profile.id)


@router.post("", response_model=CartSummary)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Add product to the cart. Returns the updated cart summary.
    """
    return service.add_to_cart(session, member.company.id, member.profile.id, payload)


@router.post("/checkout", response_model=CheckoutResult)
def checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
):
    """
    Create an order and a pending payment from the cart.

    - Sending the same Idempotency-Key again returns the first result.
    - 400 "Cart is empty" before anything is written.
    """
    return checkout_service.checkout(
        session,
        member.company,
        member.profile,
        payload,
        idempotency_key=idempotency_key,
    )


@router.patch("/{product_id}", response_model=CartSummary)
def update_cart_item(
    product_id: uuid.UUID,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Update quantity of a product in the cart.
    """
    return service.update_quantity(
        session=session,
        company_id=member.company.id,
        user_id=member.profile.id,
        product_id=product_id,
        payload=payload,
    )


@router.delete("/{product_id}", response_model=CartSummary)
def remove_cart_item(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    return service.remove_item(session, member.company.id, member.profile.id, product_id)


@router.delete("", response_model=CartSummary)
def clear_cart(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_client),
):
    """
    Clear the entire cart. Returns an empty cart summary.
    """
    return service.clear_cart(session, member.company.id, member.profile.id)
