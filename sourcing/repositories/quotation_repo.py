# sourcing/repositories/quotation_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.quotation import Quotation


class QuotationRepository:

    def list_for_user(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Quotation]:
        stmt = (
            select(Quotation)
            .where(Quotation.company_id == company_id, Quotation.user_id == user_id)
            .order_by(Quotation.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def list_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Quotation]:
        stmt = select(Quotation).where(Quotation.company_id == company_id)
        if status:
            stmt = stmt.where(Quotation.status == status)
        stmt = stmt.order_by(Quotation.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def get_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        quotation_id: uuid.UUID,
    ) -> Quotation | None:
        stmt = select(Quotation).where(
            Quotation.id == quotation_id,
            Quotation.company_id == company_id,
        )
        return session.exec(stmt).first()

    def code_exists(self, session: Session, code: str) -> bool:
        stmt = select(Quotation.id).where(Quotation.quotation_code == code)
        return session.exec(stmt).first() is not None

    def save(self, session: Session, quotation: Quotation) -> Quotation:
        session.add(quotation)
        session.flush()
        session.refresh(quotation)
        return quotation
