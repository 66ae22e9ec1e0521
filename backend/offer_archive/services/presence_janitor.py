"""
Presence janitor.

WHAT: Delete stale typing indicators of a conversation
WHY: Typing records are ephemeral; clients that vanish leave them behind
HOW: On every conversation update, query indicators older than the cutoff
     and delete them in one batch; failures never reach the caller
"""

from typing import Optional

from ..core.config import Settings, settings as default_settings
from ..events.types import ChangeEvent
from ..models.outcomes import CleanupResult
from ..store import DocumentStore, subcollection
from ..utils.clock import Clock, utc_now
from ..utils.logger import get_logger
from .batching import delete_in_chunks

logger = get_logger(__name__)


class PresenceJanitor:
    """Handler for updates of conversations/{conversationId}."""

    def __init__(
        self,
        store: DocumentStore,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.settings = settings or default_settings
        self.clock = clock or utc_now

    def handle(self, event: ChangeEvent) -> CleanupResult:
        conversation_id = event.params.get("conversationId") or event.path.rsplit("/", 1)[-1]
        return self.sweep(conversation_id)

    def sweep(self, conversation_id: str) -> CleanupResult:
        """
        Delete typing indicators whose timestamp is older than the cutoff.

        Args:
            conversation_id: Conversation whose typing sub-collection is swept

        Returns:
            CleanupResult; succeeded=False with the error text on failure
        """
        deleted = 0
        try:
            cutoff = self.clock() - self.settings.typing_stale_after
            typing_path = subcollection(
                self.settings.CONVERSATIONS_COLLECTION,
                conversation_id,
                self.settings.TYPING_SUBCOLLECTION,
            )
            stale = self.store.query(typing_path, "timestamp", "<", cutoff)
            if not stale:
                return CleanupResult(succeeded=True, deleted=0)

            for count in delete_in_chunks(self.store, stale):
                deleted += count
        except Exception as e:
            logger.error(f"Error cleaning up typing indicators for conversation {conversation_id}: {e}")
            return CleanupResult(succeeded=False, deleted=deleted, error=str(e))

        logger.info(f"Cleaned up {deleted} old typing indicators for conversation {conversation_id}")
        return CleanupResult(succeeded=True, deleted=deleted)
