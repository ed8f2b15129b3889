# sourcing/services/cart_service.py
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.models.cart import CartItem
from sourcing.models.product import Product
from sourcing.repositories.cart_repo import CartRepository
from sourcing.repositories.product_repo import ProductRepository
from sourcing.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartItemRead,
    CartSummary,
)


def unit_price_for(item: CartItem, product: Product | None) -> float:
    """
    Prefer the live product price; fall back to the add-time snapshot
    when the product is gone or inactive.
    """
    if product is not None and product.is_active and product.price is not None:
        return float(product.price)
    return float(item.price_at_add)


def cart_total(items: list[CartItem], products: dict[uuid.UUID, Product]) -> float:
    """Sum of unit_price * quantity over the cart."""
    return sum(
        unit_price_for(it, products.get(it.product_id)) * it.quantity for it in items
    )


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - ensure only clients of the company use the cart (via router dependency)
      - validate product existence, tenant and active flag
      - snapshot name/price/image at add time
      - compute line totals and cart totals
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_valid_product(
        self,
        session: Session,
        company_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product or product.company_id != company_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is inactive",
            )
        return product

    # ---- public operations ----

    def get_cart_summary(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> CartSummary:
        """
        Return full cart summary:
          - list of CartItemRead (with unit_price and line_total)
          - total_quantity
          - total_price
        """
        items = self.cart_repo.list_for_user(session, company_id, user_id)
        products = self.product_repo.get_many(session, [it.product_id for it in items])

        item_reads: list[CartItemRead] = []
        total_qty = 0

        for it in items:
            unit_price = unit_price_for(it, products.get(it.product_id))
            line_total = unit_price * it.quantity
            total_qty += it.quantity

            item_reads.append(
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    quantity=it.quantity,
                    price_at_add=it.price_at_add,
                    unit_price=unit_price,
                    product_name=it.product_name,
                    product_image_url=it.product_image_url,
                    line_total=line_total,
                    created_at=it.created_at,
                )
            )

        return CartSummary(
            items=item_reads,
            total_quantity=total_qty,
            total_price=cart_total(items, products),
        )

    def add_to_cart(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product to the client's cart.

        Rules:
          - product must exist in this company and be active
          - adding an existing product increases its quantity
          - price/name/image snapshot is taken from the current product
        """
        product = self._get_valid_product(session, company_id, payload.product_id)

        existing = self.cart_repo.get_item(session, company_id, user_id, product.id)

        if existing:
            existing.quantity = existing.quantity + payload.quantity
            self.cart_repo.update(session, existing)
        else:
            self.cart_repo.create_from_product(
                session,
                user_id=user_id,
                product=product,
                quantity=payload.quantity,
            )

        return self.get_cart_summary(session, company_id, user_id)

    def update_quantity(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartSummary:
        """
        Update the quantity of an item in the cart.
        """
        item = self.cart_repo.get_item(session, company_id, user_id, product_id)

        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not in cart",
            )

        item.quantity = payload.quantity
        self.cart_repo.update(session, item)

        return self.get_cart_summary(session, company_id, user_id)

    def remove_item(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> CartSummary:
        """
        Remove a product from the cart and return updated summary.
        """
        item = self.cart_repo.get_item(session, company_id, user_id, product_id)
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not found in cart",
            )

        self.cart_repo.delete(session, item)
        return self.get_cart_summary(session, company_id, user_id)

    def clear_cart(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> CartSummary:
        """
        Clear all items from the cart and return an empty summary.
        """
        self.cart_repo.clear_user_cart(session, company_id, user_id)
        return CartSummary(items=[], total_quantity=0, total_price=0.0)
