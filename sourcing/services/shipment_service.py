# sourcing/services/shipment_service.py
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.core.references import tracking_number, unique_code
from sourcing.core.storage_utils import (
    SHIPMENT_BUCKET,
    delete_public_url,
    generate_filename,
    upload_to_storage,
)
from sourcing.models.payment import Payment
from sourcing.models.shipment import Shipment
from sourcing.repositories.address_repo import AddressRepository
from sourcing.repositories.order_repo import OrderRepository
from sourcing.repositories.shipment_repo import ShipmentRepository
from sourcing.schemas.shipment import MediaKind, ShipmentRead, ShipmentUpdate
from sourcing.services import lifecycle
from sourcing.services.address_service import format_address

logger = logging.getLogger(__name__)

# --- Media config (one policy for every upload path) ---

MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10MB per image
MAX_VIDEO_BYTES = 50 * 1024 * 1024  # 50MB per video

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

ALLOWED_VIDEO_CONTENT_TYPES: dict[str, str] = {
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
}

UPLOAD_WORKERS = 4


def media_field(kind: MediaKind) -> str:
    return "images_urls" if kind == "images" else "videos_urls"


class ShipmentService:
    """
    Business logic for shipments.

    Responsibilities:
      - tracking views for clients and staff
      - unguarded staff edits (status, location, dates)
      - media upload/delete orchestration with Supabase Storage
      - shipment creation when a payment is accepted
    """

    def __init__(
        self,
        repo: ShipmentRepository,
        order_repo: OrderRepository,
        address_repo: AddressRepository,
    ):
        self.repo = repo
        self.order_repo = order_repo
        self.address_repo = address_repo

    # ----- Helpers -----

    @staticmethod
    def to_read(shipment: Shipment) -> ShipmentRead:
        estimated, delivered = lifecycle.shipment_display_dates(
            shipment.status, shipment.estimated_delivery, shipment.delivered_at
        )
        return ShipmentRead(
            id=shipment.id,
            tracking_number=shipment.tracking_number,
            status=shipment.status,
            location=shipment.location,
            images_urls=list(shipment.images_urls or []),
            videos_urls=list(shipment.videos_urls or []),
            estimated_delivery=estimated,
            delivered_at=delivered,
            receiver_name=shipment.receiver_name,
            receiver_phone=shipment.receiver_phone,
            receiver_address=shipment.receiver_address,
            order_id=shipment.order_id,
            quotation_id=shipment.quotation_id,
            payment_id=shipment.payment_id,
            created_at=shipment.created_at,
            updated_at=shipment.updated_at,
        )

    @staticmethod
    def _validate_and_get_ext(kind: MediaKind, content_type: str, file_bytes: bytes) -> str:
        if kind == "images":
            allowed, max_bytes = ALLOWED_IMAGE_CONTENT_TYPES, MAX_IMAGE_BYTES
            type_msg, size_msg = "JPEG, PNG, GIF, WEBP", "Image too large (max 10MB)."
        else:
            allowed, max_bytes = ALLOWED_VIDEO_CONTENT_TYPES, MAX_VIDEO_BYTES
            type_msg, size_msg = "MP4, WEBM, MOV", "Video too large (max 50MB)."

        if content_type not in allowed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unsupported file type. Allowed: {type_msg}.",
            )

        if len(file_bytes) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=size_msg,
            )

        return allowed[content_type]

    def _get(
        self,
        session: Session,
        company_id: uuid.UUID,
        shipment_id: uuid.UUID,
        for_update: bool = False,
    ) -> Shipment:
        shipment = self.repo.get_for_company(
            session, company_id, shipment_id, for_update=for_update
        )
        if not shipment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Shipment not found",
            )
        return shipment

    # ----- Reads -----

    def list_user_shipments(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ShipmentRead]:
        rows = self.repo.list_for_user(session, company_id, user_id, skip, limit)
        return [self.to_read(s) for s in rows]

    def get_user_shipment(
        self,
        session: Session,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        shipment_id: uuid.UUID,
    ) -> ShipmentRead:
        shipment = self._get(session, company_id, shipment_id)
        if shipment.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Shipment not found",
            )
        return self.to_read(shipment)

    def list_company_shipments(
        self,
        session: Session,
        company_id: uuid.UUID,
        status_filter: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ShipmentRead]:
        rows = self.repo.list_for_company(session, company_id, status_filter, skip, limit)
        return [self.to_read(s) for s in rows]

    def get_company_shipment(
        self,
        session: Session,
        company_id: uuid.UUID,
        shipment_id: uuid.UUID,
    ) -> ShipmentRead:
        return self.to_read(self._get(session, company_id, shipment_id))

    # ----- Staff edits -----

    def update_shipment(
        self,
        session: Session,
        company_id: uuid.UUID,
        shipment_id: uuid.UUID,
        payload: ShipmentUpdate,
    ) -> ShipmentRead:
        """
        Apply staff changes. No transition guard: any status may follow
        any other, and dates/location are always editable.

        Setting a delivered status without delivered_at stamps today.
        """
        shipment = self._get(session, company_id, shipment_id)
        changes = payload.model_dump(exclude_unset=True)

        if "status" in changes and changes["status"] is not None:
            try:
                shipment.status = lifecycle.resolve_shipment_status(
                    changes["status"], changes.get("custom_status")
                )
            except ValueError as exc:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=str(exc),
                )

        for field in ("location", "estimated_delivery", "delivered_at"):
            if field in changes:
                setattr(shipment, field, changes[field])

        if lifecycle.is_delivered(shipment.status) and shipment.delivered_at is None:
            shipment.delivered_at = datetime.now(timezone.utc).date()

        shipment.updated_at = datetime.now(timezone.utc)
        self.repo.save(session, shipment)
        session.commit()
        session.refresh(shipment)
        return self.to_read(shipment)

    # ----- Media -----

    def _upload_one(
        self,
        shipment_id: uuid.UUID,
        kind: MediaKind,
        ext: str,
        content_type: str,
        file_bytes: bytes,
    ) -> str:
        """
        Path pattern:
            shipment-<shipment_id>/<images|videos>/<uuid>.<ext>
        """
        path = f"shipment-{shipment_id}/{kind}/{generate_filename(ext)}"
        return upload_to_storage(SHIPMENT_BUCKET, path, file_bytes, content_type)

    def add_media(
        self,
        session: Session,
        company_id: uuid.UUID,
        shipment_id: uuid.UUID,
        kind: MediaKind,
        files: list[tuple[str, bytes]],
    ) -> ShipmentRead:
        """
        Upload files concurrently, then append every URL in one write.

        Args:
            files: list of (content_type, file_bytes)

        The append re-reads the row under a lock, so URLs added by a
        concurrent request in the meantime are kept.
        """
        if not files:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No files uploaded",
            )

        shipment = self._get(session, company_id, shipment_id)
        prepared = [
            (self._validate_and_get_ext(kind, ct, data), ct, data) for ct, data in files
        ]

        try:
            with ThreadPoolExecutor(max_workers=min(UPLOAD_WORKERS, len(prepared))) as pool:
                new_urls = list(
                    pool.map(
                        lambda item: self._upload_one(shipment.id, kind, *item),
                        prepared,
                    )
                )
        except Exception as exc:
            logger.error("Shipment %s media upload failed: %s", shipment.id, exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to upload media",
            )

        locked = self._get(session, company_id, shipment_id, for_update=True)
        field = media_field(kind)
        setattr(locked, field, [*(getattr(locked, field) or []), *new_urls])
        locked.updated_at = datetime.now(timezone.utc)
        self.repo.save(session, locked)
        session.commit()
        session.refresh(locked)

        logger.info("Shipment %s: appended %d %s", locked.id, len(new_urls), kind)
        return self.to_read(locked)

    def delete_media(
        self,
        session: Session,
        company_id: uuid.UUID,
        shipment_id: uuid.UUID,
        kind: MediaKind,
        url: str,
    ) -> ShipmentRead:
        """
        Remove one URL from the images or videos list and delete the
        Storage object behind it.
        """
        locked = self._get(session, company_id, shipment_id, for_update=True)
        field = media_field(kind)
        current = list(getattr(locked, field) or [])

        if url not in current:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Media not found for this shipment",
            )

        # Storage first: a failed delete leaves the row untouched
        try:
            delete_public_url(SHIPMENT_BUCKET, url)
        except Exception as exc:
            session.rollback()
            logger.error("Shipment %s media delete failed: %s", shipment_id, exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to delete media",
            )

        setattr(locked, field, [u for u in current if u != url])
        locked.updated_at = datetime.now(timezone.utc)
        self.repo.save(session, locked)
        session.commit()
        session.refresh(locked)
        return self.to_read(locked)

    # ----- Creation from payments -----

    def ensure_for_payment(self, session: Session, payment: Payment) -> Shipment:
        """
        Make sure an accepted payment has exactly one shipment.

        - No shipment yet: create one (status 'processing') with a unique
          tracking number, receiver from the checkout address and location
          from the address city or the order destination.
        - Existing shipment: back-fill metadata and tracking number.

        Does not commit.
        """
        meta = payment.meta or {}
        existing = self.repo.get_by_payment(session, payment.id)

        if existing:
            if not existing.meta:
                existing.meta = meta
            if not existing.tracking_number:
                existing.tracking_number = self._new_tracking_number(session)
            existing.updated_at = datetime.now(timezone.utc)
            return self.repo.save(session, existing)

        receiver_name = payment.payer_name
        receiver_phone = None
        receiver_address = None
        location = "Unknown"

        address_id = meta.get("address_id")
        if address_id:
            address = self.address_repo.get_by_id(session, uuid.UUID(str(address_id)))
            if address:
                receiver_name = address.full_name or receiver_name
                receiver_phone = address.phone
                receiver_address = format_address(address)
                location = address.city or address.country or location

        order = None
        order_id = meta.get("order_id")
        if order_id:
            order = self.order_repo.get_for_company(
                session, payment.company_id, uuid.UUID(str(order_id))
            )
            if order and location == "Unknown" and order.destination_country:
                location = order.destination_country

        shipment = Shipment(
            company_id=payment.company_id,
            user_id=payment.user_id,
            payment_id=payment.id,
            order_id=order.id if order else None,
            quotation_id=order.quotation_id if order else None,
            tracking_number=self._new_tracking_number(session),
            status="processing",
            location=location,
            receiver_name=receiver_name,
            receiver_phone=receiver_phone,
            receiver_address=receiver_address,
            meta=meta or None,
        )
        shipment = self.repo.save(session, shipment)
        logger.info(
            "Created shipment %s for payment %s",
            shipment.tracking_number,
            payment.reference_number,
        )
        return shipment

    def _new_tracking_number(self, session: Session) -> str:
        return unique_code(
            tracking_number,
            lambda code: self.repo.tracking_number_exists(session, code),
        )
