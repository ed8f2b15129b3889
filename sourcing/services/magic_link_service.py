# sourcing/services/magic_link_service.py
import hashlib
import logging
import secrets
import smtplib
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.core.config import get_settings
from sourcing.core.email_client import send_email
from sourcing.models.company import Company
from sourcing.models.magic_link import MagicLink
from sourcing.repositories.company_repo import CompanyRepository
from sourcing.repositories.magic_link_repo import MagicLinkRepository
from sourcing.repositories.quotation_repo import QuotationRepository
from sourcing.schemas.magic_link import (
    MagicLinkCreate,
    MagicLinkCreated,
    MagicLinkRead,
    MagicLinkSession,
)
from sourcing.services.lifecycle import as_utc

logger = logging.getLogger(__name__)

ALL_SCOPES = ["view", "pay", "track"]


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _forbidden(reason: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=reason)


class MagicLinkService:
    """
    Token-based client access without a login.

    Checks, in order:
      unknown token   -> 403 "Invalid token"
      past expires_at -> 403 "Token expired"
      revoked         -> 403 "Token revoked"
      uses exhausted  -> 403 "Token max uses reached"
    """

    def __init__(
        self,
        repo: MagicLinkRepository,
        company_repo: CompanyRepository,
        quotation_repo: QuotationRepository,
    ):
        self.repo = repo
        self.company_repo = company_repo
        self.quotation_repo = quotation_repo

    # ----- Staff -----

    def generate(
        self,
        session: Session,
        company: Company,
        client_id: uuid.UUID,
        payload: MagicLinkCreate,
    ) -> MagicLinkCreated:
        client = self.company_repo.get_client(session, company.id, client_id)
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Client not found",
            )

        if payload.quotation_id is not None:
            quotation = self.quotation_repo.get_for_company(
                session, company.id, payload.quotation_id
            )
            if not quotation or quotation.user_id != client.id:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Quotation not found",
                )

        settings = get_settings()
        days = payload.expires_in_days or settings.MAGIC_LINK_DEFAULT_DAYS
        scopes = list(dict.fromkeys(payload.scopes)) if payload.scopes else list(ALL_SCOPES)

        token = secrets.token_urlsafe(32)
        link = self.repo.save(
            session,
            MagicLink(
                company_id=company.id,
                client_id=client.id,
                quotation_id=payload.quotation_id,
                token_hash=hash_token(token),
                scopes=scopes,
                expires_at=datetime.now(timezone.utc) + timedelta(days=days),
                max_uses=payload.max_uses,
                client_name_snapshot=client.full_name,
            ),
        )
        url = f"{settings.PUBLIC_APP_URL.rstrip('/')}/c/{token}"
        logger.info("Magic link %s generated for client %s", link.id, client.id)

        if payload.send_email:
            self._send_link_email(company, client.email, client.full_name, url, link.expires_at)

        return MagicLinkCreated(
            id=link.id,
            token=token,
            url=url,
            scopes=link.scopes,
            expires_at=link.expires_at,
            max_uses=link.max_uses,
        )

    @staticmethod
    def _send_link_email(
        company: Company,
        to_email: str,
        name: str,
        url: str,
        expires_at: datetime,
    ) -> None:
        """The link is still returned to staff when delivery fails."""
        subject = f"Your {company.name} portal link"
        text = (
            f"Hello {name},\n\n"
            f"{company.name} shared a link to your quotations, payments and shipments:\n"
            f"{url}\n\n"
            f"The link expires on {expires_at:%Y-%m-%d}.\n"
        )
        html = (
            f"<p>Hello {name},</p>"
            f"<p>{company.name} shared a link to your quotations, payments and shipments:</p>"
            f'<p><a href="{url}">Open portal</a></p>'
            f"<p>The link expires on {expires_at:%Y-%m-%d}.</p>"
        )
        try:
            send_email(to_email, subject, text, html)
        except (RuntimeError, smtplib.SMTPException, OSError) as exc:
            logger.warning("Magic link email to %s failed: %s", to_email, exc)

    def list_links(
        self,
        session: Session,
        company_id: uuid.UUID,
        client_id: uuid.UUID | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[MagicLinkRead]:
        rows = self.repo.list_for_company(session, company_id, client_id, skip, limit)
        return [MagicLinkRead.model_validate(r, from_attributes=True) for r in rows]

    def revoke(
        self,
        session: Session,
        company_id: uuid.UUID,
        link_id: uuid.UUID,
    ) -> MagicLinkRead:
        link = self.repo.get_for_company(session, company_id, link_id)
        if not link:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Magic link not found",
            )
        if link.revoked_at is None:
            link.revoked_at = datetime.now(timezone.utc)
            link = self.repo.save(session, link)
            logger.info("Magic link %s revoked", link.id)
        return MagicLinkRead.model_validate(link, from_attributes=True)

    # ----- Token holders -----

    def resolve(self, session: Session, token: str, now: datetime | None = None) -> MagicLink:
        """Run the token checks without counting a use."""
        now = now or datetime.now(timezone.utc)
        link = self.repo.get_by_hash(session, hash_token(token))

        if link is None:
            raise _forbidden("Invalid token")
        if as_utc(link.expires_at) <= now:
            raise _forbidden("Token expired")
        if link.revoked_at is not None:
            raise _forbidden("Token revoked")
        if link.max_uses is not None and link.use_count >= link.max_uses:
            raise _forbidden("Token max uses reached")
        return link

    def validate(self, session: Session, token: str) -> MagicLinkSession:
        """
        Entry point of the client portal: checks the token and counts one use.
        """
        now = datetime.now(timezone.utc)
        link = self.resolve(session, token, now)

        link.use_count = (link.use_count or 0) + 1
        link.last_accessed_at = now
        link = self.repo.save(session, link)

        company = self.company_repo.get_by_id(session, link.company_id)
        return MagicLinkSession(
            magic_link_id=link.id,
            company_id=link.company_id,
            company_name=company.name if company else "Company",
            company_slug=company.slug if company else "",
            client_id=link.client_id,
            client_name=link.client_name_snapshot,
            quotation_id=link.quotation_id,
            scopes=link.scopes,
        )

    @staticmethod
    def require_scope(link: MagicLink, scope: str) -> None:
        if scope not in (link.scopes or []):
            raise _forbidden(f"Token does not grant '{scope}' access")

    @staticmethod
    def check_quotation(link: MagicLink, quotation_id: uuid.UUID) -> None:
        """A link bound to one quotation only opens that quotation."""
        if link.quotation_id is not None and link.quotation_id != quotation_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quotation not found",
            )
