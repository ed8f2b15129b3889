# sourcing/routers/products.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from sourcing.core.auth import get_company
from sourcing.database import get_session
from sourcing.models.company import Company
from sourcing.repositories.product_repo import ProductRepository
from sourcing.schemas.product import ProductRead
from sourcing.services.product_service import ProductService

router = APIRouter(prefix="/shop/{slug}/products", tags=["Products"])

service = ProductService(ProductRepository())


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    company: Company = Depends(get_company),
    skip: int = 0,
    limit: int = 50,
):
    """
    List active products of the storefront.

    - Public endpoint.
    """
    return service.list_products(session, company.id, skip=skip, limit=limit)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    company: Company = Depends(get_company),
):
    """
    Get a single active product (public).
    """
    return service.get_product(session, company.id, product_id)
