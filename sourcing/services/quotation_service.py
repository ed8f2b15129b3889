# sourcing/services/quotation_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.core.references import reference_code, unique_code
from sourcing.models.quotation import Quotation
from sourcing.repositories.quotation_repo import QuotationRepository
from sourcing.schemas.quotation import (
    QuotationClientUpdate,
    QuotationCreate,
    QuotationPriceUpdate,
    QuotationRead,
)
from sourcing.services import lifecycle
from sourcing.services.order_service import OrderService

logger = logging.getLogger(__name__)


class QuotationService:
    """
    Quotation requests and their approval.

    Approval happens through a client magic link; an accepted quotation
    gets exactly one order, waiting for receiver details.
    """

    def __init__(self, repo: QuotationRepository, order_service: OrderService):
        self.repo = repo
        self.order_service = order_service

    @staticmethod
    def to_read(quotation: Quotation) -> QuotationRead:
        return QuotationRead(
            id=quotation.id,
            quotation_code=quotation.quotation_code,
            product_name=quotation.product_name,
            quantity=quotation.quantity,
            service_type=quotation.service_type,
            shipping_method=quotation.shipping_method,
            destination_country=quotation.destination_country,
            destination_city=quotation.destination_city,
            image_urls=list(quotation.image_urls or []),
            total_price=quotation.total_price,
            selected_option=quotation.selected_option,
            status=quotation.status,
            display_status=lifecycle.quotation_display_status(quotation.status),
            created_at=quotation.created_at,
        )

    def _get(
        self,
        session: Session,
        company_id: uuid.UUID,
        quotation_id: uuid.UUID,
        user_id: uuid.UUID | None = None,
    ) -> Quotation:
        quotation = self.repo.get_for_company(session, company_id, quotation_id)
        if not quotation or (user_id is not None and quotation.user_id != user_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quotation not found",
            )
        return quotation

    # ----- Client -----

    def create_quotation(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        payload: QuotationCreate,
    ) -> QuotationRead:
        code = unique_code(
            lambda: reference_code("QT"),
            lambda c: self.repo.code_exists(session, c),
        )
        quotation = Quotation(
            company_id=company_id,
            user_id=user_id,
            quotation_code=code,
            status=lifecycle.QUOTATION_PENDING,
            **payload.model_dump(),
        )
        quotation = self.repo.save(session, quotation)
        session.commit()
        session.refresh(quotation)
        logger.info("Quotation %s requested by %s", quotation.quotation_code, user_id)
        return self.to_read(quotation)

    def list_user_quotations(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[QuotationRead]:
        rows = self.repo.list_for_user(session, company_id, user_id, skip, limit)
        return [self.to_read(q) for q in rows]

    def get_user_quotation(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        quotation_id: uuid.UUID,
    ) -> QuotationRead:
        return self.to_read(self._get(session, company_id, quotation_id, user_id))

    def client_update(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        quotation_id: uuid.UUID,
        payload: QuotationClientUpdate,
    ) -> QuotationRead:
        """
        Magic-link PATCH.

        Only `status` (Approved | Confirmed | Rejected) and `selected_option`
        are applied; any other status value is ignored. 400 when nothing
        applicable remains or the transition is not allowed.
        """
        quotation = self._get(session, company_id, quotation_id, user_id)

        new_status = payload.status
        if new_status not in lifecycle.QUOTATION_CLIENT_SETTABLE:
            new_status = None

        if new_status is None and payload.selected_option is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No valid fields to update",
            )

        if new_status is not None and new_status != quotation.status:
            if not lifecycle.is_allowed_quotation_transition(quotation.status, new_status):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Invalid status transition: {quotation.status} -> {new_status}",
                )
            logger.info(
                "Quotation %s: %s -> %s",
                quotation.quotation_code,
                quotation.status,
                new_status,
            )
            quotation.status = new_status

        if payload.selected_option is not None:
            quotation.selected_option = payload.selected_option

        quotation = self.repo.save(session, quotation)

        if quotation.status in lifecycle.QUOTATION_ACCEPTED:
            self.order_service.create_from_quotation(session, quotation)

        session.commit()
        session.refresh(quotation)
        return self.to_read(quotation)

    # ----- Staff -----

    def list_company_quotations(
        self,
        session: Session,
        company_id: uuid.UUID,
        status_filter: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[QuotationRead]:
        rows = self.repo.list_for_company(session, company_id, status_filter, skip, limit)
        return [self.to_read(q) for q in rows]

    def set_price(
        self,
        session: Session,
        company_id: uuid.UUID,
        quotation_id: uuid.UUID,
        payload: QuotationPriceUpdate,
    ) -> QuotationRead:
        quotation = self._get(session, company_id, quotation_id)
        if quotation.status != lifecycle.QUOTATION_PENDING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only pending quotations can be priced",
            )

        quotation.total_price = payload.total_price
        quotation = self.repo.save(session, quotation)
        session.commit()
        session.refresh(quotation)
        return self.to_read(quotation)
