# sourcing/services/payment_service.py
import logging
import time
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.core.storage_utils import PAYMENT_PROOF_BUCKET, upload_to_storage
from sourcing.models.company import Company
from sourcing.models.payment import Payment
from sourcing.repositories.payment_repo import PaymentRepository
from sourcing.schemas.payment import (
    InvoiceLine,
    InvoiceRead,
    PaymentMetrics,
    PaymentRead,
    PaymentStatusResult,
    PaymentStatusUpdate,
)
from sourcing.services import payment_status
from sourcing.services.shipment_service import ShipmentService

logger = logging.getLogger(__name__)

MAX_PROOF_BYTES = 10 * 1024 * 1024  # 10MB

ALLOWED_PROOF_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "application/pdf": "pdf",
}


class PaymentService:
    """
    Business logic for payments.

    Responsibilities:
      - client and staff listings (status filter on display labels)
      - staff status changes through the payment state machine
      - shipment creation once a payment is accepted
      - payment proof upload
      - invoice view and dashboard metrics
    """

    def __init__(self, repo: PaymentRepository, shipment_service: ShipmentService):
        self.repo = repo
        self.shipment_service = shipment_service

    # ----- Helpers -----

    @staticmethod
    def to_read(payment: Payment) -> PaymentRead:
        return PaymentRead(
            id=payment.id,
            reference_number=payment.reference_number,
            amount=payment.amount,
            currency=payment.currency,
            payment_method=payment.payment_method,
            status=payment.status,
            status_label=payment_status.normalize(payment.status),
            payer_name=payment.payer_name,
            payer_email=payment.payer_email,
            proof_url=payment.proof_url,
            payment_notes=payment.payment_notes,
            meta=payment.meta,
            created_at=payment.created_at,
        )

    def _get(self, session: Session, company_id: uuid.UUID, payment_id: uuid.UUID) -> Payment:
        payment = self.repo.get_for_company(session, company_id, payment_id)
        if not payment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Payment not found",
            )
        return payment

    def _get_user_payment(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        payment_id: uuid.UUID,
    ) -> Payment:
        payment = self._get(session, company_id, payment_id)
        if payment.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Payment not found",
            )
        return payment

    # ----- Client -----

    def list_user_payments(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[PaymentRead]:
        rows = self.repo.list_for_user(session, company_id, user_id, skip, limit)
        return [self.to_read(p) for p in rows]

    def get_user_payment(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        payment_id: uuid.UUID,
    ) -> PaymentRead:
        return self.to_read(self._get_user_payment(session, company_id, user_id, payment_id))

    def upload_proof(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        payment_id: uuid.UUID,
        content_type: str,
        file_bytes: bytes,
    ) -> PaymentRead:
        """
        Store a payment proof (image or PDF) and attach its URL.

        Path pattern:
            payment_proof_<payment_id>_<unix ms>.<ext>
        """
        payment = self._get_user_payment(session, company_id, user_id, payment_id)

        if content_type not in ALLOWED_PROOF_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported file type. Allowed: JPEG, PNG, GIF, WEBP, PDF.",
            )
        if len(file_bytes) > MAX_PROOF_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="File too large (max 10MB).",
            )

        ext = ALLOWED_PROOF_CONTENT_TYPES[content_type]
        path = f"payment_proof_{payment.id}_{int(time.time() * 1000)}.{ext}"

        try:
            url = upload_to_storage(PAYMENT_PROOF_BUCKET, path, file_bytes, content_type)
        except Exception as exc:
            logger.error("Payment %s proof upload failed: %s", payment.id, exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to upload payment proof",
            )

        payment.proof_url = url
        self.repo.update(session, payment)
        session.commit()
        session.refresh(payment)
        return self.to_read(payment)

    def get_invoice(
        self,
        session: Session,
        company: Company,
        user_id: uuid.UUID,
        payment_id: uuid.UUID,
    ) -> InvoiceRead:
        """
        Invoice view built from the checkout snapshot in payment metadata.

        Only accepted-equivalent payments have an invoice.
        """
        payment = self._get_user_payment(session, company.id, user_id, payment_id)

        if not payment_status.is_accepted(payment.status):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invoice can only be downloaded for accepted payments",
            )

        lines: list[InvoiceLine] = []
        for item in (payment.meta or {}).get("cart_items", []):
            quantity = int(item.get("quantity", 1))
            unit_price = float(item.get("unit_price", 0))
            lines.append(
                InvoiceLine(
                    product_id=item.get("product_id"),
                    product_name=item.get("product_name") or "Item",
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=float(item.get("total_price", unit_price * quantity)),
                    image=item.get("image"),
                )
            )

        return InvoiceRead(
            invoice_number=f"INV-{payment.reference_number}",
            payment_id=payment.id,
            issued_at=payment.created_at,
            company_name=company.name,
            company_country=company.country,
            company_logo_url=company.logo_url,
            payer_name=payment.payer_name,
            payer_email=payment.payer_email,
            payment_method=payment.payment_method,
            currency=payment.currency,
            lines=lines,
            total=payment.amount,
        )

    # ----- Staff -----

    def list_company_payments(
        self,
        session: Session,
        company_id: uuid.UUID,
        label: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[PaymentRead]:
        """
        label filters on the display status, so "approved" also
        returns rows stored as "Accepted".
        """
        statuses = payment_status.stored_keys_for(label) if label else None
        if label and not statuses:
            return []
        rows = self.repo.list_for_company(session, company_id, statuses, skip, limit)
        return [self.to_read(p) for p in rows]

    def get_company_payment(
        self,
        session: Session,
        company_id: uuid.UUID,
        payment_id: uuid.UUID,
    ) -> PaymentRead:
        return self.to_read(self._get(session, company_id, payment_id))

    def get_metrics(self, session: Session, company_id: uuid.UUID) -> PaymentMetrics:
        counts = {"pending": 0, "approved": 0, "rejected": 0, "failed": 0}
        total_amount_approved = 0.0
        rows = self.repo.list_all_for_company(session, company_id)

        for payment in rows:
            label = payment_status.normalize(payment.status)
            if payment_status.is_accepted(payment.status):
                counts["approved"] += 1
                total_amount_approved += payment.amount or 0.0
            elif label in counts:
                counts[label] += 1

        return PaymentMetrics(
            total=len(rows),
            total_amount_approved=total_amount_approved,
            **counts,
        )

    def update_status(
        self,
        session: Session,
        company_id: uuid.UUID,
        payment_id: uuid.UUID,
        payload: PaymentStatusUpdate,
    ) -> PaymentStatusResult:
        """
        Staff status change.

        - 400 for unknown statuses or transitions outside the table
        - same label: no-op
        - accepted-equivalent target: ensure a shipment exists for the
          payment, in the same transaction as the status write
        """
        payment = self._get(session, company_id, payment_id)

        try:
            stored = payment_status.to_stored(payload.status)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            )

        current = payment_status.normalize(payment.status)
        new = payment_status.normalize(stored)

        if current == new:
            return PaymentStatusResult(status=payment.status, label=current)

        if not payment_status.is_allowed_transition(current, new):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status transition: {current} -> {new}",
            )

        payment.status = stored
        self.repo.update(session, payment)

        if payment_status.is_accepted(stored):
            self.shipment_service.ensure_for_payment(session, payment)

        session.commit()
        session.refresh(payment)

        logger.info("Payment %s: %s -> %s", payment.reference_number, current, new)
        return PaymentStatusResult(status=payment.status, label=new)
