"""
Document store on top of SQLAlchemy.

WHAT: Point lookups, single-predicate queries and atomic write batches
WHY: Shared by the archival trigger and the presence janitor
HOW: Each batch commit runs in one database transaction; committed changes
     are published to subscribed listeners afterwards
"""

import copy
import operator
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.database import Database
from ..core.models import Document
from ..utils.exceptions import (
    BatchAlreadyCommittedError,
    BatchLimitExceededError,
    DocumentNotFoundError,
    InvalidQueryError,
)
from ..utils.logger import get_logger
from .codec import decode_document, decode_value, encode_document, encode_value
from .types import DocumentChange, DocumentSnapshot, WriteKind, WriteOp, join_path

logger = get_logger(__name__)

ChangeListener = Callable[[DocumentChange], Any]

_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_MISSING = object()


def _matches(data: Dict[str, Any], field: str, op: str, value: Any) -> bool:
    current = data.get(field, _MISSING)
    if current is _MISSING:
        return False
    try:
        return bool(_OPERATORS[op](current, value))
    except TypeError:
        # Values of incomparable types (e.g. str vs datetime) never match
        return False


class WriteBatch:
    """
    Accumulates writes and applies them atomically on commit.

    Usage:
        batch = store.batch()
        batch.set("archived_conversations", "c1", {...})
        batch.update("conversations", "c1", {"isArchived": True})
        batch.commit()
    """

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._ops: List[WriteOp] = []
        self._committed = False

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        """Create or fully overwrite a document."""
        self._ops.append(WriteOp(WriteKind.SET, collection, doc_id, copy.deepcopy(dict(data))))
        return self

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> "WriteBatch":
        """Merge top-level fields into an existing document."""
        self._ops.append(WriteOp(WriteKind.UPDATE, collection, doc_id, copy.deepcopy(dict(fields))))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        """Delete a document; deleting a missing document is a no-op."""
        self._ops.append(WriteOp(WriteKind.DELETE, collection, doc_id))
        return self

    def commit(self) -> List[DocumentChange]:
        """
        Apply all operations in one transaction.

        Returns:
            One DocumentChange per document written

        Raises:
            BatchAlreadyCommittedError: If the batch was committed before
            BatchLimitExceededError: If the batch exceeds the store limit
            DocumentNotFoundError: If an update targets a missing document
        """
        if self._committed:
            raise BatchAlreadyCommittedError()
        if len(self._ops) > self._store.max_writes:
            raise BatchLimitExceededError(len(self._ops), self._store.max_writes)

        self._committed = True
        return self._store._apply(self._ops)


class DocumentStore:
    """
    Schemaless document store.

    WHAT: Firestore-shaped collections/documents persisted in one SQL table
    WHY: Handlers need lookups, filtered queries and all-or-nothing batches
    HOW: Reads decode fresh copies; batches apply inside Database.session()
    """

    def __init__(self, database: Database, max_writes: int = 500):
        self.database = database
        self.max_writes = max_writes
        self._listeners: List[ChangeListener] = []

    # Reads

    def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        """Point lookup; None when the document does not exist."""
        with self.database.session() as db:
            row = db.query(Document).filter_by(collection=collection, doc_id=doc_id).one_or_none()
            if row is None:
                return None
            return DocumentSnapshot(collection, row.doc_id, decode_document(row.data))

    def list(self, collection: str) -> List[DocumentSnapshot]:
        """All documents of a collection, ordered by id."""
        with self.database.session() as db:
            rows = (
                db.query(Document)
                .filter_by(collection=collection)
                .order_by(Document.doc_id)
                .all()
            )
            return [DocumentSnapshot(collection, row.doc_id, decode_document(row.data)) for row in rows]

    def query(self, collection: str, field: str, op: str, value: Any) -> List[DocumentSnapshot]:
        """
        Documents of a collection matching one field predicate.

        Args:
            collection: Collection path
            field: Top-level field name
            op: One of ==, !=, <, <=, >, >=
            value: Value to compare against

        Returns:
            Matching snapshots ordered by id; documents lacking the field never match
        """
        if op not in _OPERATORS:
            raise InvalidQueryError(op, list(_OPERATORS))
        # Compare against the stored form, e.g. naive datetimes read back as UTC
        value = decode_value(encode_value(value))

        with self.database.session() as db:
            rows = db.query(Document).filter_by(collection=collection)
            if op == "==" and isinstance(value, str):
                rows = rows.filter(Document.data[field].as_string() == value)
            snapshots = [
                DocumentSnapshot(collection, row.doc_id, decode_document(row.data))
                for row in rows.order_by(Document.doc_id).all()
            ]
        return [snapshot for snapshot in snapshots if _matches(snapshot.data, field, op, value)]

    # Writes

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> List[DocumentChange]:
        return self.batch().set(collection, doc_id, data).commit()

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> List[DocumentChange]:
        return self.batch().update(collection, doc_id, fields).commit()

    def delete(self, collection: str, doc_id: str) -> List[DocumentChange]:
        return self.batch().delete(collection, doc_id).commit()

    # Change notifications

    def subscribe(self, listener: ChangeListener) -> None:
        """Receive every committed DocumentChange."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _apply(self, ops: List[WriteOp]) -> List[DocumentChange]:
        rows: Dict[Tuple[str, str], Optional[Document]] = {}
        before: Dict[Tuple[str, str], Optional[Dict[str, Any]]] = {}
        current: Dict[Tuple[str, str], Optional[Dict[str, Any]]] = {}
        order: List[Tuple[str, str]] = []

        with self.database.session() as db:
            for op in ops:
                key = (op.collection, op.doc_id)
                if key not in rows:
                    row = (
                        db.query(Document)
                        .filter_by(collection=op.collection, doc_id=op.doc_id)
                        .one_or_none()
                    )
                    rows[key] = row
                    before[key] = decode_document(row.data) if row is not None else None
                    current[key] = copy.deepcopy(before[key])
                    order.append(key)

                row = rows[key]
                if op.kind == WriteKind.SET:
                    if row is None:
                        row = Document(collection=op.collection, doc_id=op.doc_id)
                        db.add(row)
                        rows[key] = row
                    current[key] = copy.deepcopy(op.data)
                    row.data = encode_document(op.data)
                elif op.kind == WriteKind.UPDATE:
                    if row is None:
                        raise DocumentNotFoundError(op.path)
                    merged = dict(current[key] or {})
                    merged.update(copy.deepcopy(op.data))
                    current[key] = merged
                    row.data = encode_document(merged)
                elif op.kind == WriteKind.DELETE:
                    if row is not None:
                        db.delete(row)
                        db.flush()
                        rows[key] = None
                    current[key] = None

        changes = [
            DocumentChange(collection, doc_id, before[(collection, doc_id)], current[(collection, doc_id)])
            for collection, doc_id in order
            if before[(collection, doc_id)] is not None or current[(collection, doc_id)] is not None
        ]
        logger.debug(f"Committed batch of {len(ops)} writes touching {len(changes)} documents")
        self._publish(changes)
        return changes

    def _publish(self, changes: List[DocumentChange]) -> None:
        for listener in list(self._listeners):
            for change in changes:
                try:
                    listener(change)
                except Exception as e:
                    logger.error(f"Change listener failed for {change.path}: {e}")

    def __repr__(self):
        return f"<DocumentStore(url={self.database.url}, max_writes={self.max_writes})>"


def subcollection(parent_collection: str, parent_id: str, name: str) -> str:
    """Path of a sub-collection, e.g. conversations/c1/messages."""
    return join_path(parent_collection, parent_id, name)
