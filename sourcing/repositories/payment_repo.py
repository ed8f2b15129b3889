# sourcing/repositories/payment_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from sourcing.models.payment import BankAccount, CryptoWallet, Payment


class PaymentRepository:
    """
    Data access layer for payments and company payment methods.

    No commits; services own the transaction.
    """

    # ---- Payments ----

    def list_for_user(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.company_id == company_id, Payment.user_id == user_id)
            .order_by(Payment.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def list_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        statuses: set[str] | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Payment]:
        """
        statuses: lower-cased stored values to match, whatever their casing
        in the table (e.g. {"accepted", "approved", "completed"}).
        """
        stmt = select(Payment).where(Payment.company_id == company_id)
        if statuses:
            stmt = stmt.where(func.lower(Payment.status).in_(sorted(statuses)))
        stmt = stmt.order_by(Payment.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def list_all_for_company(self, session: Session, company_id: uuid.UUID) -> list[Payment]:
        stmt = select(Payment).where(Payment.company_id == company_id)
        return session.exec(stmt).all()

    def get_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        payment_id: uuid.UUID,
    ) -> Payment | None:
        stmt = select(Payment).where(
            Payment.id == payment_id,
            Payment.company_id == company_id,
        )
        return session.exec(stmt).first()

    def get_by_idempotency_key(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        key: str,
    ) -> Payment | None:
        stmt = select(Payment).where(
            Payment.company_id == company_id,
            Payment.user_id == user_id,
            Payment.idempotency_key == key,
        )
        return session.exec(stmt).first()

    def reference_exists(self, session: Session, reference: str) -> bool:
        stmt = select(Payment.id).where(Payment.reference_number == reference)
        return session.exec(stmt).first() is not None

    def create(self, session: Session, payment: Payment) -> Payment:
        session.add(payment)
        session.flush()
        session.refresh(payment)
        return payment

    def update(self, session: Session, payment: Payment) -> Payment:
        session.add(payment)
        session.flush()
        session.refresh(payment)
        return payment

    # ---- Payment methods ----

    def get_bank_account(
        self,
        session: Session,
        company_id: uuid.UUID,
        account_id: uuid.UUID,
    ) -> BankAccount | None:
        stmt = select(BankAccount).where(
            BankAccount.id == account_id,
            BankAccount.company_id == company_id,
            BankAccount.is_active == True,  # noqa: E712
        )
        return session.exec(stmt).first()

    def get_crypto_wallet(
        self,
        session: Session,
        company_id: uuid.UUID,
        wallet_id: uuid.UUID,
    ) -> CryptoWallet | None:
        stmt = select(CryptoWallet).where(
            CryptoWallet.id == wallet_id,
            CryptoWallet.company_id == company_id,
            CryptoWallet.is_active == True,  # noqa: E712
        )
        return session.exec(stmt).first()
