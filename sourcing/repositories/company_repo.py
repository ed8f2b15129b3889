# sourcing/repositories/company_repo.py
import uuid

from sqlmodel import Session, select

from sourcing.models.company import Company, Profile


class CompanyRepository:
    """
    Data access layer for companies and profiles.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Companies -----

    def get_by_slug(self, session: Session, slug: str) -> Company | None:
        stmt = select(Company).where(Company.slug == slug)
        return session.exec(stmt).first()

    def get_by_id(self, session: Session, company_id: uuid.UUID) -> Company | None:
        return session.get(Company, company_id)

    # ----- Profiles -----

    def get_profile(self, session: Session, profile_id: uuid.UUID) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        return session.get(Profile, profile_id)

    def get_client(
        self,
        session: Session,
        company_id: uuid.UUID,
        client_id: uuid.UUID,
    ) -> Profile | None:
        """Return a client profile only if it belongs to the company."""
        stmt = select(Profile).where(
            Profile.id == client_id,
            Profile.company_id == company_id,
            Profile.role == "client",
        )
        return session.exec(stmt).first()

    def create_profile(self, session: Session, profile: Profile) -> Profile:
        """Insert a new Profile and return the persisted row."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile
