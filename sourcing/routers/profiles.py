# sourcing/routers/profiles.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from sourcing.core.auth import TenantMember, require_auth, require_staff
from sourcing.database import get_session
from sourcing.models.company import Profile
from sourcing.repositories.company_repo import CompanyRepository
from sourcing.repositories.profile_repo import ProfileRepository
from sourcing.schemas.profile import ClientStatusUpdate, ProfileRead, ProfileUpdate
from sourcing.services.profile_service import ProfileService

me_router = APIRouter(prefix="/me", tags=["Profile"])
store_router = APIRouter(prefix="/store/{slug}/clients", tags=["Store Clients"])

service = ProfileService(ProfileRepository(), CompanyRepository())


# -------- Self profile --------


@me_router.get("", response_model=ProfileRead)
def read_me(current_user: Profile = Depends(require_auth)):
    """
    Return the authenticated profile.

    Auth:
      - Requires valid Supabase JWT.
    """
    return current_user


@me_router.patch("", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(require_auth),
):
    """
    Update the authenticated profile (partial update).

    Only `full_name` and `phone` are editable.
    """
    return service.update_me(session, current_user, payload)


# -------- Staff endpoints --------


@store_router.get("", response_model=list[ProfileRead])
def list_clients(
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
    skip: int = 0,
    limit: int = 50,
):
    return service.list_clients(session, member.company.id, skip, limit)


@store_router.patch("/{client_id}/status", response_model=ProfileRead)
def change_client_status(
    client_id: uuid.UUID,
    payload: ClientStatusUpdate,
    session: Session = Depends(get_session),
    member: TenantMember = Depends(require_staff),
):
    """
    Ban or re-activate a client (staff only).
    """
    return service.set_client_status(session, member.company.id, client_id, payload)
