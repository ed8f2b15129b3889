# sourcing/core/auth.py
import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from sourcing.core.config import get_settings
from sourcing.database import get_session
from sourcing.models.company import Company, Profile
from sourcing.repositories.company_repo import CompanyRepository

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so require_auth can answer with a clean 401.
bearer_scheme = HTTPBearer(auto_error=False)

company_repo = CompanyRepository()

STAFF_ROLES = {"owner", "staff"}


@dataclass
class TenantMember:
    """Authenticated profile acting inside one company."""

    company: Company
    profile: Profile


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def _default_name_from_email(email: str) -> str:
    """
    Derive a default display name from email if the profile has not
    been completed yet.
    """
    if "@" in email:
        return email.split("@", 1)[0]
    return email


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Profile | None:
    """
    Resolve the current profile from a Supabase JWT.

    Flow:
      1. If no Authorization header => anonymous => return None.
      2. Decode JWT => extract 'sub' (auth user id) and 'email'.
      3. Find the profile in public.profiles.
      4. If missing, auto-provision a profile with no company; it gains
         access once staff invite it into a tenant.

    Raises:
        HTTPException(401): if token is malformed or missing required claims.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    email = payload.get("email")

    if not sub or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub/email",
        )

    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    profile = company_repo.get_profile(session, sub_uuid)
    if profile is None:
        profile = company_repo.create_profile(
            session,
            Profile(
                id=sub_uuid,
                email=email,
                full_name=_default_name_from_email(email),
            ),
        )

    return profile


def require_auth(user: Profile | None = Depends(get_current_user)) -> Profile:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if no valid token was sent.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


def get_company(slug: str, session: Session = Depends(get_session)) -> Company:
    """
    Resolve the tenant from the `{slug}` path parameter.

    Raises:
        HTTPException(404): unknown slug.
    """
    company = company_repo.get_by_slug(session, slug)
    if company is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found",
        )
    return company


def require_client(
    company: Company = Depends(get_company),
    user: Profile = Depends(require_auth),
) -> TenantMember:
    """
    Enforce an active client of the company in the path.

    Use this for:
      - cart and checkout endpoints
      - client views of orders, payments, shipments, quotations
    """
    if (
        user.company_id != company.id
        or user.role != "client"
        or user.status != "active"
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not authorized",
        )
    return TenantMember(company=company, profile=user)


def require_staff(
    company: Company = Depends(get_company),
    user: Profile = Depends(require_auth),
) -> TenantMember:
    """
    Enforce owner/staff of the company in the path.

    Raises:
        HTTPException(403): not a staff member of this company.
    """
    if (
        user.company_id != company.id
        or user.role not in STAFF_ROLES
        or user.status != "active"
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required",
        )
    return TenantMember(company=company, profile=user)
