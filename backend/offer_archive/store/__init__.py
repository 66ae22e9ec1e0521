"""Document store layer."""

from .types import (
    DocumentSnapshot,
    DocumentChange,
    WriteKind,
    WriteOp,
    join_path,
)
from .document_store import DocumentStore, WriteBatch, subcollection

__all__ = [
    "DocumentSnapshot",
    "DocumentChange",
    "WriteKind",
    "WriteOp",
    "join_path",
    "DocumentStore",
    "WriteBatch",
    "subcollection",
]
