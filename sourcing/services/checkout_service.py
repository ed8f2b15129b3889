# sourcing/services/checkout_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from sourcing.core.references import reference_code, unique_code
from sourcing.models.address import ClientAddress
from sourcing.models.company import Company, Profile
from sourcing.models.order import Order
from sourcing.models.payment import Payment
from sourcing.repositories.cart_repo import CartRepository
from sourcing.repositories.payment_repo import PaymentRepository
from sourcing.repositories.product_repo import ProductRepository
from sourcing.schemas.checkout import CheckoutRequest, CheckoutResult
from sourcing.services import lifecycle
from sourcing.services.address_service import AddressService, format_address
from sourcing.services.cart_service import cart_total, unit_price_for
from sourcing.services.order_service import OrderService
from sourcing.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

CHECKOUT_MESSAGE = (
    "Your order has been placed. Complete the transfer and upload your "
    "payment proof so we can confirm it."
)


class CheckoutService:
    """
    Turns the server-side cart into an Order and a pending Payment.

    Everything (address upsert, order, payment, cart clearing) is written
    in one transaction: any failure rolls back and leaves the cart as it was.
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        payment_repo: PaymentRepository,
        address_service: AddressService,
        order_service: OrderService,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.payment_repo = payment_repo
        self.address_service = address_service
        self.order_service = order_service

    # ----- Preconditions -----

    def _payment_method_descriptor(
        self,
        session: Session,
        company_id: uuid.UUID,
        payload: CheckoutRequest,
    ) -> str:
        if payload.payment_method_type == "bank":
            account = self.payment_repo.get_bank_account(
                session, company_id, payload.payment_method_id
            )
            if account:
                return f"{account.bank_name} - {account.account_number}"
        else:
            wallet = self.payment_repo.get_crypto_wallet(
                session, company_id, payload.payment_method_id
            )
            if wallet:
                network = wallet.network or wallet.cryptocurrency
                return f"{wallet.wallet_name} ({wallet.cryptocurrency} - {network})"

        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payment method not found",
        )

    def _existing_result(
        self, session: Session, company_id: uuid.UUID, payment: Payment
    ) -> CheckoutResult | None:
        order_id = (payment.meta or {}).get("order_id")
        if not order_id:
            return None
        order = self.order_service.order_repo.get_for_company(
            session, company_id, uuid.UUID(str(order_id))
        )
        if not order:
            return None
        return CheckoutResult(
            order=self.order_service.to_read(order),
            payment=PaymentService.to_read(payment),
            message=CHECKOUT_MESSAGE,
        )

    def _replay(
        self,
        session: Session,
        company: Company,
        profile: Profile,
        idempotency_key: str | None,
    ) -> CheckoutResult | None:
        if not idempotency_key:
            return None
        previous = self.payment_repo.get_by_idempotency_key(
            session, company.id, profile.id, idempotency_key
        )
        if not previous:
            return None
        result = self._existing_result(session, company.id, previous)
        if result:
            logger.info(
                "Checkout replay for key %s -> %s",
                idempotency_key,
                previous.reference_number,
            )
        return result

    # ----- Checkout -----

    def checkout(
        self,
        session: Session,
        company: Company,
        profile: Profile,
        payload: CheckoutRequest,
        idempotency_key: str | None = None,
    ) -> CheckoutResult:
        """
        Steps:
          1. Replay: a known idempotency key returns the first result.
          2. Validate before writing: cart not empty, address given,
             payment method active in this company.
          3. Upsert new_address (no commit).
          4. Total from live product prices, falling back to the
             add-time snapshot.
          5. Create the order (Processing) and the payment (pending).
          6. Clear the cart and commit once.
        """
        replay = self._replay(session, company, profile, idempotency_key)
        if replay:
            return replay

        items = self.cart_repo.list_for_user(session, company.id, profile.id)
        if not items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        if payload.address_id is None and payload.new_address is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A delivery address is required",
            )
        if payload.address_id is not None and payload.new_address is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Send either address_id or new_address, not both",
            )

        descriptor = self._payment_method_descriptor(session, company.id, payload)

        address: ClientAddress
        if payload.new_address is not None:
            address = self.address_service.upsert_address(
                session, company.id, profile.id, payload.new_address, commit=False
            )
        else:
            address = self.address_service.get_address(
                session, company.id, profile.id, payload.address_id
            )

        products = self.product_repo.get_many(session, [it.product_id for it in items])

        total = cart_total(items, products)
        snapshot: list[dict] = []
        for it in items:
            unit_price = unit_price_for(it, products.get(it.product_id))
            snapshot.append(
                {
                    "product_id": str(it.product_id),
                    "product_name": it.product_name,
                    "quantity": it.quantity,
                    "unit_price": unit_price,
                    "total_price": unit_price * it.quantity,
                    "image": it.product_image_url,
                }
            )

        first = items[0]
        product_name = first.product_name or "Item"
        if len(items) > 1:
            product_name = f"{product_name} + {len(items) - 1} more"

        try:
            order = self.order_service.create_order(
                session,
                Order(
                    company_id=company.id,
                    user_id=profile.id,
                    reference="",
                    product_name=product_name,
                    product_image_url=first.product_image_url,
                    quantity=sum(it.quantity for it in items),
                    amount=total,
                    currency=company.currency,
                    status=lifecycle.ORDER_PROCESSING,
                    destination_country=address.country,
                    receiver_name=address.full_name,
                    receiver_phone=address.phone,
                    receiver_address=format_address(address),
                ),
            )

            payment = self.payment_repo.create(
                session,
                Payment(
                    company_id=company.id,
                    user_id=profile.id,
                    amount=total,
                    currency=company.currency,
                    payment_method=descriptor,
                    status="pending",
                    reference_number=unique_code(
                        lambda: reference_code("PAY"),
                        lambda code: self.payment_repo.reference_exists(session, code),
                    ),
                    payer_name=profile.full_name,
                    payer_email=profile.email,
                    idempotency_key=idempotency_key,
                    meta={
                        "order_id": str(order.id),
                        "cart_items": snapshot,
                        "address_id": str(address.id),
                        "payment_method_type": payload.payment_method_type,
                        "payment_method_id": str(payload.payment_method_id),
                    },
                ),
            )

            self.cart_repo.delete_items(session, items)
            session.commit()
        except IntegrityError:
            session.rollback()
            replay = self._replay(session, company, profile, idempotency_key)
            if replay:
                return replay
            logger.exception("Checkout failed for user %s", profile.id)
            raise
        except Exception:
            session.rollback()
            logger.exception("Checkout failed for user %s", profile.id)
            raise

        session.refresh(order)
        session.refresh(payment)
        logger.info(
            "Checkout %s: order %s, total %.2f %s",
            payment.reference_number,
            order.reference,
            total,
            payment.currency,
        )

        return CheckoutResult(
            order=self.order_service.to_read(order),
            payment=PaymentService.to_read(payment),
            message=CHECKOUT_MESSAGE,
        )
