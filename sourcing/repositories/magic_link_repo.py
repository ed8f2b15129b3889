# sourcing/repositories/magic_link_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.magic_link import MagicLink


class MagicLinkRepository:

    def get_by_hash(self, session: Session, token_hash: str) -> MagicLink | None:
        stmt = select(MagicLink).where(MagicLink.token_hash == token_hash)
        return session.exec(stmt).first()

    def get_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        link_id: uuid.UUID,
    ) -> MagicLink | None:
        stmt = select(MagicLink).where(
            MagicLink.id == link_id,
            MagicLink.company_id == company_id,
        )
        return session.exec(stmt).first()

    def list_for_company(
        self,
        session: Session,
        company_id: uuid.UUID,
        client_id: uuid.UUID | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[MagicLink]:
        stmt = select(MagicLink).where(MagicLink.company_id == company_id)
        if client_id is not None:
            stmt = stmt.where(MagicLink.client_id == client_id)
        stmt = stmt.order_by(MagicLink.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def save(self, session: Session, link: MagicLink) -> MagicLink:
        session.add(link)
        session.commit()
        session.refresh(link)
        return link
