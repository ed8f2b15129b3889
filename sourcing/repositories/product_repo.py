# sourcing/repositories/product_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_many(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.id.in_(product_ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def list_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
    ) -> list[Product]:
        stmt = select(Product).where(Product.company_id == company_id)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        stmt = stmt.order_by(Product.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()
