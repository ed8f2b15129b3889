# sourcing/repositories/cart_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.cart import CartItem
from sourcing.models.product import Product


class CartRepository:

    # Get items for a client in one company
    def list_for_user(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.company_id == company_id, CartItem.user_id == user_id)
            .order_by(CartItem.created_at)
        )
        return session.exec(stmt).all()

    def get_item(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.company_id == company_id,
            CartItem.user_id == user_id,
            CartItem.product_id == product_id,
        )
        return session.exec(stmt).first()

    # CRUD
    def update(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def clear_user_cart(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> None:
        for row in self.list_for_user(session, company_id, user_id):
            session.delete(row)
        session.commit()

    def delete_items(self, session: Session, items: list[CartItem]) -> None:
        """
        Delete without committing; used inside the checkout transaction.
        """
        for item in items:
            session.delete(item)
        session.flush()

    def create_from_product(
            self,
            session: Session,
            *,
            user_id: uuid.UUID,
            product: Product,
            quantity: int,
    ) -> CartItem:
        """
        Create a CartItem from a Product, snapshotting:
          - price_at_add
          - product_name
          - product_image_url

        Business logic (e.g., preventing negative qty) should live in the service.
        """
        item = CartItem(
            company_id=product.company_id,
            user_id=user_id,
            product_id=product.id,
            quantity=quantity,
            price_at_add=product.price,
            product_name=product.name,
            product_image_url=product.image_url,
        )
        session.add(item)
        session.commit()
        session.refresh(item)
        return item
