"""
Shared fixtures: an in-memory database per test, a document store over it,
a blob store in a temporary directory, and seed helpers.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scorecard.database import Base
from scorecard.models import db_models  # noqa: F401
from scorecard.models.db_models import UserRole
from scorecard.services.storage import DocumentStore, LocalBlobStore


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return DocumentStore(db_session)


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "uploads"))


# =============================================================================
# SEED HELPERS
# =============================================================================

def seed_user(store, name="Ana Torres", role=UserRole.RESPONSABLE, user_id=None, email=None):
    fields = {
        "name": name,
        "email": email or f"{name.lower().replace(' ', '.')}@example.edu",
        "role": role.value,
        "available_roles": [role.value],
        "notifications": [],
    }
    if user_id:
        fields["id"] = user_id
    return store.insert("user", fields)


def seed_indicator(store, name="Tasa de titulación", methods=("Informe anual", "Acta de consejo")):
    return store.insert("indicator", {
        "name": name,
        "perspective_id": "p-1",
        "verification_methods": list(methods),
    })


def method_doc(name, status="Pending", due_date=None, submitted_file=None, file_history=None):
    return {
        "name": name,
        "status": status,
        "due_date": due_date.isoformat() if due_date else None,
        "submitted_file": submitted_file,
        "file_history": file_history or [],
        "notes": None,
    }


def evidence_doc(name="previo.pdf", uploaded_at="2025-05-01"):
    return {
        "name": name,
        "original_name": name,
        "file_name": name.replace(".pdf", "_1700000000000_abc123.pdf"),
        "url": f"/api/files/Ana_Torres/{name}",
        "uploaded_at": uploaded_at,
        "size": 10,
        "type": "application/pdf",
    }


def seed_assignment(store, user_id, jury=(), methods=None, overall_status="Pending", indicator_id="ind-1"):
    if methods is None:
        methods = [method_doc("Informe anual", due_date=NOW + timedelta(days=7))]
    return store.insert("assigned_indicator", {
        "user_id": user_id,
        "indicator_id": indicator_id,
        "jury": list(jury),
        "assigned_verification_methods": methods,
        "overall_status": overall_status,
        "responsable_name": "Ana Torres",
        "revision": 0,
    })
