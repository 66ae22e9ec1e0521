"""
Change event types.

WHAT: Payload delivered to document-update handlers
WHY: Handlers see the same shape whatever delivers the change
HOW: Pydantic v2 models; snapshots are plain mappings, None when absent
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EventKind(str, enum.Enum):
    """Document change kinds."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class ChangeEvent(BaseModel):
    """One document change as seen by a handler."""

    path: str
    params: Dict[str, str] = Field(default_factory=dict)
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None

    @property
    def kind(self) -> EventKind:
        if self.before is None:
            return EventKind.CREATED
        if self.after is None:
            return EventKind.DELETED
        return EventKind.UPDATED


@dataclass
class DeliveryReport:
    """Result of delivering one event to one handler."""
    handler: str
    path: str
    succeeded: bool
    error: str | None = None
    exception: BaseException | None = field(default=None, repr=False)
