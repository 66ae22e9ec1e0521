"""
Handler outcome models.

WHAT: Result records for the archival workflow and typing cleanup
WHY: Primary and advisory phases have separate failure domains; callers and
     tests inspect both without relying on swallowed exceptions
HOW: Dataclasses with a status enum for the archival path
"""

import enum
from dataclasses import dataclass


class ArchivalStatus(str, enum.Enum):
    """What the archival trigger did for one offer update."""
    SKIPPED = "skipped"
    NO_CONVERSATION = "no_conversation"
    ALREADY_ARCHIVED = "already_archived"
    ARCHIVED = "archived"


@dataclass
class CleanupResult:
    """Outcome of an advisory typing-indicator purge."""
    succeeded: bool = True
    deleted: int = 0
    error: str | None = None


@dataclass
class ArchivalOutcome:
    """Outcome of one archival trigger invocation."""
    status: ArchivalStatus
    offer_id: str
    conversation_id: str | None = None
    messages_archived: int = 0
    cleanup: CleanupResult | None = None

    @property
    def archived(self) -> bool:
        return self.status == ArchivalStatus.ARCHIVED

