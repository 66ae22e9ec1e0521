"""
Document store types.

WHAT: Snapshots, change records and write operations
WHY: Consistent contracts between the store, the change notifier and the handlers
HOW: Dataclasses; paths are "/"-joined collection segments plus a document id
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def join_path(*segments: str) -> str:
    """Join path segments, e.g. join_path("conversations", "c1", "messages")."""
    return "/".join(s.strip("/") for s in segments if s)


@dataclass
class DocumentSnapshot:
    """A document as read from the store."""
    collection: str
    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return join_path(self.collection, self.id)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass
class DocumentChange:
    """Committed change of one document; None stands for "did not exist"."""
    collection: str
    doc_id: str
    before: Optional[Dict[str, Any]]
    after: Optional[Dict[str, Any]]

    @property
    def path(self) -> str:
        return join_path(self.collection, self.doc_id)


class WriteKind(str, enum.Enum):
    """Batch operation kinds."""
    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class WriteOp:
    """One pending batch operation."""
    kind: WriteKind
    collection: str
    doc_id: str
    data: Optional[Dict[str, Any]] = None

    @property
    def path(self) -> str:
        return join_path(self.collection, self.doc_id)
