"""
Document Store

Collection/document access over the SQLAlchemy tables. Services talk to this
instead of the ORM so the workflow only ever sees plain dicts, and so every
assigned-indicator write goes through the same revision check.
"""
import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.db_models import UserDB, IndicatorDB, AssignedIndicatorDB
from ..errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


COLLECTIONS = {
    "user": UserDB,
    "indicator": IndicatorDB,
    "assigned_indicator": AssignedIndicatorDB,
}

# Never leave the store
HIDDEN_FIELDS = {"password_hash"}


class DocumentStore:
    """
    Key-value document access by collection name.

    Writes commit immediately; a failed write is rolled back and the
    SQLAlchemy error propagates to the caller.
    """

    def __init__(self, db_session: Session):
        """Initialize with database session."""
        self.db = db_session

    def _model(self, collection: str):
        model = COLLECTIONS.get(collection)
        if model is None:
            raise ValueError(f"Unknown collection: {collection}")
        return model

    def _column_names(self, model) -> List[str]:
        return [c.name for c in model.__table__.columns]

    def _to_document(self, row) -> Dict[str, Any]:
        return {
            name: getattr(row, name)
            for name in self._column_names(type(row))
            if name not in HIDDEN_FIELDS
        }

    def _check_fields(self, model, fields: Dict[str, Any]) -> None:
        unknown = set(fields) - set(self._column_names(model))
        if unknown:
            raise ValueError(f"Unknown fields for {model.__tablename__}: {sorted(unknown)}")

    # =========================================================================
    # READS
    # =========================================================================

    def get_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        model = self._model(collection)
        row = self.db.query(model).filter(model.id == doc_id).first()
        return self._to_document(row) if row else None

    def list_where(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        model = self._model(collection)
        if field not in self._column_names(model):
            raise ValueError(f"Unknown field for {collection}: {field}")
        rows = self.db.query(model).filter(getattr(model, field) == value).all()
        return [self._to_document(row) for row in rows]

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        model = self._model(collection)
        return [self._to_document(row) for row in self.db.query(model).all()]

    # =========================================================================
    # WRITES
    # =========================================================================

    def insert(self, collection: str, fields: Dict[str, Any]) -> str:
        """Insert a document and return its id (generated when absent)."""
        model = self._model(collection)
        values = dict(fields)
        values.setdefault("id", str(uuid4()))
        self._check_fields(model, values)

        try:
            self.db.add(model(**values))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(f"Inserted {collection}/{values['id']}")
        return values["id"]

    def update(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected_revision: Optional[int] = None,
    ) -> None:
        """
        Overwrite the given fields of one document.

        For collections with a revision column the revision is bumped on every
        write. When `expected_revision` is given the write only applies if the
        stored revision still matches; otherwise ConflictError is raised and
        nothing changes.
        """
        model = self._model(collection)
        self._check_fields(model, fields)
        has_revision = "revision" in self._column_names(model)

        values = {k: v for k, v in fields.items() if k != "revision"}
        if has_revision:
            values["revision"] = model.revision + 1

        query = self.db.query(model).filter(model.id == doc_id)
        if expected_revision is not None and has_revision:
            query = query.filter(model.revision == expected_revision)

        try:
            updated = query.update(values, synchronize_session=False)
            if updated == 0:
                self.db.rollback()
                exists = self.db.query(model.id).filter(model.id == doc_id).first() is not None
                if not exists:
                    raise NotFoundError(f"{collection} {doc_id} not found")
                raise ConflictError(
                    f"{collection} {doc_id} was modified concurrently",
                    reason="RevisionMismatch",
                )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
