"""PowerUp — SQL-backed Document Store.

Keeps each document as a JSON payload row in the `documents` table.
StorageTimestamp values are written as tagged JSON objects and come back
as StorageTimestamp on read. Query filtering, ordering and cursors run in
Python over a collection's rows.
"""

import json
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models.meet_models import StorageTimestamp
from app.models.storage_models import StoredDocument
from app.storage.base import (
    DocumentNotFoundError,
    DocumentStore,
    OrderBy,
    QueryFilter,
    StorageError,
)
from app.core.logging import get_logger

logger = get_logger("storage.sql")

TIMESTAMP_TAG = "__timestamp__"


def _encode(value: Any) -> Any:
    """json.dumps fallback for non-JSON values."""
    if isinstance(value, StorageTimestamp):
        return {TIMESTAMP_TAG: value.instant.isoformat()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not storable")


def _decode(obj: Dict[str, Any]) -> Any:
    if len(obj) == 1 and TIMESTAMP_TAG in obj:
        return StorageTimestamp(instant=datetime.fromisoformat(obj[TIMESTAMP_TAG]))
    return obj


def dumps_document(data: Dict[str, Any]) -> str:
    return json.dumps(data, default=_encode)


def loads_document(payload: str) -> Dict[str, Any]:
    return json.loads(payload, object_hook=_decode)


def _field_value(doc: Dict[str, Any], field: str) -> Any:
    """Look up a possibly dotted field path ("location.city")."""
    value: Any = doc
    for part in field.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _comparable(value: Any) -> Any:
    if isinstance(value, StorageTimestamp):
        return value.instant
    if isinstance(value, Enum):
        return value.value
    return value


def _matches(doc: Dict[str, Any], f: QueryFilter) -> bool:
    actual = _comparable(_field_value(doc, f.field))
    if f.op == "in":
        return actual in [_comparable(v) for v in f.value]
    expected = _comparable(f.value)
    if f.op == "==":
        return actual == expected
    if f.op == "!=":
        return actual is not None and actual != expected
    if actual is None:
        return False
    try:
        if f.op == "<":
            return actual < expected
        if f.op == "<=":
            return actual <= expected
        if f.op == ">":
            return actual > expected
        return actual >= expected
    except TypeError:
        # Values of different types never satisfy a range condition
        return False


class SqlDocumentStore(DocumentStore):
    """DocumentStore over a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def _row(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        return self.session.get(StoredDocument, (collection, doc_id))

    @staticmethod
    def _to_document(row: StoredDocument) -> Dict[str, Any]:
        data = loads_document(row.payload_json)
        data["id"] = row.id
        return data

    def _commit(self, action: str, collection: str, doc_id: str = "") -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"{action} failed: {e}", collection, doc_id) from e

    # ── Writes ──

    def create(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        body = {k: v for k, v in data.items() if k != "id"}
        row = StoredDocument(
            collection=collection, id=doc_id, payload_json=dumps_document(body)
        )
        self.session.add(row)
        self._commit("Create", collection, doc_id)
        logger.debug(
            f"Created document {doc_id}", extra={"collection": collection}
        )
        return doc_id

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        try:
            row = self._row(collection, doc_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Lookup failed: {e}", collection, doc_id) from e
        if row is None:
            raise DocumentNotFoundError(
                f"No document {doc_id} in {collection}", collection, doc_id
            )

        body = loads_document(row.payload_json)
        body.update({k: v for k, v in data.items() if k != "id"})
        row.payload_json = dumps_document(body)
        row.updated_at = datetime.now(timezone.utc)
        self.session.add(row)
        self._commit("Update", collection, doc_id)
        logger.debug(f"Updated document {doc_id}", extra={"collection": collection})

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            row = self._row(collection, doc_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Lookup failed: {e}", collection, doc_id) from e
        if row is None:
            raise DocumentNotFoundError(
                f"No document {doc_id} in {collection}", collection, doc_id
            )
        self.session.delete(row)
        self._commit("Delete", collection, doc_id)
        logger.debug(f"Deleted document {doc_id}", extra={"collection": collection})

    # ── Reads ──

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            row = self._row(collection, doc_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Lookup failed: {e}", collection, doc_id) from e
        return self._to_document(row) if row is not None else None

    def list(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        try:
            rows = self.session.exec(
                select(StoredDocument)
                .where(StoredDocument.collection == collection)
                .order_by(StoredDocument.created_at, StoredDocument.id)  # type: ignore
            ).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Query failed: {e}", collection) from e

        all_docs = [self._to_document(r) for r in rows]
        docs = [d for d in all_docs if all(_matches(d, f) for f in filters)]

        if order_by is not None:
            docs = [d for d in docs if _field_value(d, order_by.field) is not None]
            try:
                docs.sort(
                    key=lambda d: _comparable(_field_value(d, order_by.field)),
                    reverse=order_by.direction == "desc",
                )
            except TypeError as e:
                raise StorageError(
                    f"Cannot order {collection} by {order_by.field}: {e}", collection
                ) from e

        if start_after is not None:
            docs = self._after_cursor(collection, all_docs, docs, order_by, start_after)

        if limit is not None:
            docs = docs[:limit]
        return docs

    @staticmethod
    def _after_cursor(
        collection: str,
        all_docs: List[Dict[str, Any]],
        docs: List[Dict[str, Any]],
        order_by: Optional[OrderBy],
        cursor_id: str,
    ) -> List[Dict[str, Any]]:
        """Drop everything up to and including the cursor document."""
        ids = [d["id"] for d in docs]
        if cursor_id in ids:
            return docs[ids.index(cursor_id) + 1:]

        cursor = next((d for d in all_docs if d["id"] == cursor_id), None)
        if cursor is None:
            raise DocumentNotFoundError(
                f"Cursor document {cursor_id} not found in {collection}",
                collection,
                cursor_id,
            )
        if order_by is None:
            return []

        # Cursor no longer matches the query; resume from its position in the ordering
        key = _comparable(_field_value(cursor, order_by.field))
        if key is None:
            return []
        if order_by.direction == "desc":
            return [d for d in docs if _comparable(_field_value(d, order_by.field)) < key]
        return [d for d in docs if _comparable(_field_value(d, order_by.field)) > key]
