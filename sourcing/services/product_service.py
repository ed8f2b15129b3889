# sourcing/services/product_service.py
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.models.product import Product
from sourcing.repositories.product_repo import ProductRepository


class ProductService:
    """
    Read-only storefront catalog of a company.
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def list_products(
        self,
        session: Session,
        company_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        return self.repo.list_for_company(session, company_id, skip=skip, limit=limit)

    def get_product(
        self,
        session: Session,
        company_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product or product.company_id != company_id or not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product
