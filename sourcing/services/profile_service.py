# sourcing/services/profile_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from sourcing.models.company import Profile
from sourcing.repositories.company_repo import CompanyRepository
from sourcing.repositories.profile_repo import ProfileRepository
from sourcing.schemas.profile import ClientStatusUpdate, ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    """
    Business logic for profiles.

    Responsibilities:
      - self-service edits (name, phone)
      - staff listing and ban/unban of the company's clients
    """

    def __init__(self, repo: ProfileRepository, company_repo: CompanyRepository):
        self.repo = repo
        self.company_repo = company_repo

    # ----- Self profile -----

    def update_me(
        self,
        session: Session,
        current_user: Profile,
        payload: ProfileUpdate,
    ) -> Profile:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(current_user, field, value)
        return self.repo.update(session, current_user)

    # ----- Staff operations -----

    def list_clients(
        self,
        session: Session,
        company_id: uuid.UUID,
        skip: int,
        limit: int,
    ) -> list[Profile]:
        return self.repo.list_clients(session, company_id, skip=skip, limit=limit)

    def set_client_status(
        self,
        session: Session,
        company_id: uuid.UUID,
        client_id: uuid.UUID,
        payload: ClientStatusUpdate,
    ) -> Profile:
        """
        Ban or re-activate a client. Banned clients fail require_client.

        Raises:
            HTTPException(404): not a client of this company.
        """
        client = self.company_repo.get_client(session, company_id, client_id)
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Client not found",
            )
        client.status = payload.status
        client = self.repo.update(session, client)
        logger.info("Client %s is now %s", client.id, client.status)
        return client
