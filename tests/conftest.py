import os

# Settings are read on first import; point them at throwaway values.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from sourcing.database import get_session
from sourcing.main import app
from sourcing.models.company import Company, Profile
from sourcing.models.payment import BankAccount, CryptoWallet
from sourcing.models.product import Product

STORAGE_BASE = "https://project.supabase.co/storage/v1/object/public"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(profile: Profile) -> str:
    claims = {
        "sub": str(profile.id),
        "email": profile.email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def auth(profile: Profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(profile)}"}


@pytest.fixture
def company(session):
    company = Company(name="Acme Sourcing", slug="acme", country="CN")
    session.add(company)
    session.commit()
    session.refresh(company)
    return company


@pytest.fixture
def other_company(session):
    company = Company(name="Other Co", slug="other")
    session.add(company)
    session.commit()
    session.refresh(company)
    return company


def _profile(session, company, role, email, name="Test User"):
    profile = Profile(
        id=uuid.uuid4(),
        email=email,
        full_name=name,
        company_id=company.id if company else None,
        role=role,
    )
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture
def staff(session, company):
    return _profile(session, company, "staff", "staff@example.com", "Sam Staff")


@pytest.fixture
def client_profile(session, company):
    return _profile(session, company, "client", "client@example.com", "Chloe Client")


@pytest.fixture
def staff_headers(staff):
    return auth(staff)


@pytest.fixture
def client_headers(client_profile):
    return auth(client_profile)


@pytest.fixture
def products(session, company):
    widget = Product(company_id=company.id, name="Widget", price=10.0)
    gadget = Product(company_id=company.id, name="Gadget", price=5.0)
    session.add(widget)
    session.add(gadget)
    session.commit()
    session.refresh(widget)
    session.refresh(gadget)
    return widget, gadget


@pytest.fixture
def bank_account(session, company):
    account = BankAccount(
        company_id=company.id,
        bank_name="First Bank",
        account_number="001-234",
    )
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


@pytest.fixture
def crypto_wallet(session, company):
    wallet = CryptoWallet(
        company_id=company.id,
        wallet_name="Treasury",
        cryptocurrency="USDT",
        network="TRC20",
    )
    session.add(wallet)
    session.commit()
    session.refresh(wallet)
    return wallet


@pytest.fixture
def fake_storage(monkeypatch):
    """
    Replace Supabase Storage calls imported by the services.

    Uploaded and deleted paths are recorded per bucket.
    """
    calls = {"uploaded": [], "deleted": []}

    def fake_upload(bucket, path, file_bytes, content_type=None):
        calls["uploaded"].append((bucket, path, content_type))
        return f"{STORAGE_BASE}/{bucket}/{path}"

    def fake_delete(bucket, url):
        calls["deleted"].append((bucket, url))

    monkeypatch.setattr("sourcing.services.shipment_service.upload_to_storage", fake_upload)
    monkeypatch.setattr("sourcing.services.shipment_service.delete_public_url", fake_delete)
    monkeypatch.setattr("sourcing.services.payment_service.upload_to_storage", fake_upload)
    return calls


@pytest.fixture
def make_profile(session):
    def _make(company, role, email, name="Test User"):
        return _profile(session, company, role, email, name)

    return _make


@pytest.fixture
def headers_for():
    return auth
