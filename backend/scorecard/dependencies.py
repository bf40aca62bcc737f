"""
Scorecard - Service Dependencies
FastAPI providers for the stores and services routers use.
Tests override get_db and get_blob_store.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .services.storage import DocumentStore, LocalBlobStore
from .services.storage.blob_store import UPLOAD_DIR
from .services.notifications import NotificationDispatcher, NotificationInbox, UserInboxTransport
from .services.workflow import FileLifecycleManager, ReviewService
from .services.assignments import AssignmentService
from .services.indicators import IndicatorService


def get_document_store(db: Session = Depends(get_db)) -> DocumentStore:
    return DocumentStore(db)


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(UPLOAD_DIR)


def get_transport(store: DocumentStore = Depends(get_document_store)) -> UserInboxTransport:
    return UserInboxTransport(store)


def get_lifecycle_manager(
    store: DocumentStore = Depends(get_document_store),
    blob_store: LocalBlobStore = Depends(get_blob_store),
    transport: UserInboxTransport = Depends(get_transport),
) -> FileLifecycleManager:
    return FileLifecycleManager(store, blob_store, NotificationDispatcher(transport))


def get_review_service(
    store: DocumentStore = Depends(get_document_store),
    transport: UserInboxTransport = Depends(get_transport),
) -> ReviewService:
    return ReviewService(store, transport)


def get_assignment_service(
    store: DocumentStore = Depends(get_document_store),
    transport: UserInboxTransport = Depends(get_transport),
) -> AssignmentService:
    return AssignmentService(store, transport)


def get_indicator_service(store: DocumentStore = Depends(get_document_store)) -> IndicatorService:
    return IndicatorService(store)


def get_inbox(store: DocumentStore = Depends(get_document_store)) -> NotificationInbox:
    return NotificationInbox(store)
