# sourcing/repositories/profile_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.company import Profile


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def list_clients(
        self,
        session: Session,
        company_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Profile]:
        """
        Paginated client listing of one company, newest first.
        """
        stmt = (
            select(Profile)
            .where(Profile.company_id == company_id, Profile.role == "client")
            .order_by(Profile.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def update(self, session: Session, profile: Profile) -> Profile:
        """Persist changes to an existing Profile."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile
