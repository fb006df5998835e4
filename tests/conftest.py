"""
Shared fixtures: an in-memory SQLite ledger, the FastAPI app with its
collaborators overridden, and a handful of principals.
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_JWT_SECRET"] = "test-secret"
os.environ["RESEND_API_KEY"] = ""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db, get_dispatcher, get_file_store
from app.core.auth import ROLE_ADMIN, ROLE_LANDLORD, ROLE_TENANT, User, get_current_user
from app.core.database import Base
from app.core.notifications import NotificationDispatcher
from app.core.storage import FileMetadata, FileStore
from app.main import app
from app.models.lease import Lease, LeaseStatus
from app.models.property import Property


LANDLORD = User(user_id="landlord-1", email="landlord@example.com", role=ROLE_LANDLORD)
TENANT = User(user_id="tenant-1", email="tenant@example.com", role=ROLE_TENANT)
ADMIN = User(user_id="admin-1", email="admin@example.com", role=ROLE_ADMIN)
STRANGER = User(user_id="stranger-1", email="stranger@example.com", role=ROLE_TENANT)


# =============================================================================
# Fakes
# =============================================================================

class FakeFileStore(FileStore):
    """File store backed by a dict of storage_id -> (content_type, size)."""

    def __init__(self):
        super().__init__(base_url="http://storage.test", bucket="test", service_key="key")
        self.files = {}

    def put(self, storage_id: str, content_type: str = "image/jpeg", size: int = 1024):
        self.files[storage_id] = (content_type, size)
        return storage_id

    def get_metadata(self, storage_id):
        if storage_id not in self.files:
            return None
        content_type, size = self.files[storage_id]
        return FileMetadata(storage_id=storage_id, content_type=content_type, size=size)


class FakeMailer:
    def __init__(self, configured: bool = True, fail: bool = False):
        self.configured = configured
        self.fail = fail
        self.sent = []

    def send(self, to, subject, html):
        if self.fail:
            raise RuntimeError("mail provider down")
        self.sent.append({"to": to, "subject": subject, "html": html})


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# App
# =============================================================================

@pytest.fixture
def file_store():
    store = FakeFileStore()
    store.put("uploads/id-front.jpg")
    store.put("uploads/id-back.png", content_type="image/png")
    return store


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def dispatcher(session_factory, mailer):
    return NotificationDispatcher(session_factory=session_factory, mailer=mailer)


@pytest.fixture
def client(session_factory, file_store, dispatcher):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_store] = lambda: file_store
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def act_as(client):
    """Switch the principal every following request is made as. None means no token."""
    def _act(user):
        if user is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = lambda: user
        return client
    return _act


# =============================================================================
# Ledger rows
# =============================================================================

@pytest.fixture
def make_property(db):
    def _make(landlord_id=LANDLORD.id, is_available=True, approval_status="approved", name="Maple House"):
        prop = Property(
            landlord_id=landlord_id,
            name=name,
            address="12 Maple Street",
            city="Springfield",
            is_available=is_available,
            approval_status=approval_status,
        )
        db.add(prop)
        db.commit()
        db.refresh(prop)
        return prop
    return _make


@pytest.fixture
def make_lease(db, make_property):
    def _make(
        status=LeaseStatus.DRAFT,
        prop=None,
        start_date=date(2025, 1, 15),
        end_date=date(2025, 12, 31),
        monthly_rent=Decimal("1200.00"),
        deposit_amount=Decimal("2400.00"),
    ):
        prop = prop or make_property()
        lease = Lease(
            property_id=prop.id,
            tenant_id=TENANT.id,
            tenant_email=TENANT.email,
            landlord_id=prop.landlord_id,
            landlord_email=LANDLORD.email,
            start_date=start_date,
            end_date=end_date,
            monthly_rent=monthly_rent,
            deposit_amount=deposit_amount,
            payment_due_day=1,
            tenant_documents=[],
            status=status,
        )
        db.add(lease)
        db.commit()
        db.refresh(lease)
        return lease
    return _make


@pytest.fixture
def lease_payload(make_property):
    def _payload(prop=None, **overrides):
        prop = prop or make_property()
        payload = {
            "property_id": prop.id,
            "tenant_id": TENANT.id,
            "tenant_email": TENANT.email,
            "start_date": "2025-01-15",
            "end_date": "2025-12-31",
            "monthly_rent": "1200.00",
            "deposit_amount": "2400.00",
            "lease_document": {
                "title": "Residential Lease",
                "clauses": [{"id": "c1", "title": "Rent", "content": "Rent is due monthly."}],
            },
        }
        payload.update(overrides)
        return payload
    return _payload


SIGN_PAYLOAD = {
    "signature_data": "data:image/png;base64,c2lnbmF0dXJl",
    "documents": [
        {"type": "id_front", "storage_id": "uploads/id-front.jpg"},
        {"type": "id_back", "storage_id": "uploads/id-back.png"},
    ],
}
