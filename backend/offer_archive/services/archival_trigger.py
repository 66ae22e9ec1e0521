"""
Archival trigger for completed offers.

WHAT: Archive an offer's conversation when the offer becomes completed
WHY: Completed deals keep an immutable copy of their chat history
HOW: Edge-trigger on the status transition, one atomic copy-and-mark batch,
     then a separate best-effort purge of typing indicators
"""

from typing import Any, Dict, List, Optional

from ..core.config import Settings, settings as default_settings
from ..events.types import ChangeEvent
from ..models.outcomes import ArchivalOutcome, ArchivalStatus, CleanupResult
from ..store import DocumentSnapshot, DocumentStore, subcollection
from ..utils.clock import Clock, utc_now
from ..utils.exceptions import ConversationConflictError
from ..utils.logger import get_logger
from .batching import chunked, delete_in_chunks

logger = get_logger(__name__)

# Writes in the final batch besides message copies: archive record + source update
_FIXED_WRITES = 2


def is_completion_transition(
    before: Optional[Dict[str, Any]],
    after: Optional[Dict[str, Any]],
    completed_status: str = "completed",
) -> bool:
    """
    True only on the not-completed -> completed edge.

    A missing snapshot counts as having no status.
    """
    before_status = (before or {}).get("status")
    after_status = (after or {}).get("status")
    return before_status != completed_status and after_status == completed_status


class ArchivalTrigger:
    """
    Handler for updates of offers/{offerId}.

    WHAT: Copy the conversation and its messages to the archive namespace
    WHY: Runs exactly when an offer transitions to completed
    HOW: Store, clock and settings are injected; no state survives an invocation
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.settings = settings or default_settings
        self.clock = clock or utc_now

    def handle(self, event: ChangeEvent) -> ArchivalOutcome:
        """
        Process one offer update.

        Args:
            event: Change event with params["offerId"] and before/after snapshots

        Returns:
            ArchivalOutcome describing the primary and cleanup phases

        Raises:
            Any store failure or ConversationConflictError from the primary phase
        """
        offer_id = event.params.get("offerId") or event.path.rsplit("/", 1)[-1]

        if not is_completion_transition(event.before, event.after, self.settings.COMPLETED_STATUS):
            logger.debug(f"Offer {offer_id} update is not a completion transition, skipping")
            return ArchivalOutcome(status=ArchivalStatus.SKIPPED, offer_id=offer_id)

        try:
            outcome = self.archive(offer_id)
        except Exception as e:
            logger.error(f"Error archiving conversation for offer {offer_id}: {e}")
            raise

        if outcome.archived:
            outcome.cleanup = self.purge_typing(outcome.conversation_id)
        return outcome

    def archive(self, offer_id: str) -> ArchivalOutcome:
        """Primary phase: locate the conversation and commit the archive copy."""
        matches = self.store.query(
            self.settings.CONVERSATIONS_COLLECTION, "offerId", "==", offer_id
        )
        if not matches:
            logger.info(f"No conversation found for offer {offer_id}")
            return ArchivalOutcome(status=ArchivalStatus.NO_CONVERSATION, offer_id=offer_id)

        conversation = self._select_conversation(offer_id, matches)
        if conversation is None:
            logger.info(f"Conversation for offer {offer_id} is already archived")
            return ArchivalOutcome(
                status=ArchivalStatus.ALREADY_ARCHIVED,
                offer_id=offer_id,
                conversation_id=matches[0].id,
            )

        messages = self.store.list(
            subcollection(
                self.settings.CONVERSATIONS_COLLECTION,
                conversation.id,
                self.settings.MESSAGES_SUBCOLLECTION,
            )
        )
        self._commit_archive(conversation, messages)

        logger.info(
            f"Successfully archived conversation {conversation.id} "
            f"({len(messages)} messages) for completed offer {offer_id}"
        )
        return ArchivalOutcome(
            status=ArchivalStatus.ARCHIVED,
            offer_id=offer_id,
            conversation_id=conversation.id,
            messages_archived=len(messages),
        )

    def purge_typing(self, conversation_id: str) -> CleanupResult:
        """
        Advisory phase: delete every typing indicator of the conversation.

        Failures are logged and reported, never raised.
        """
        typing_path = subcollection(
            self.settings.CONVERSATIONS_COLLECTION,
            conversation_id,
            self.settings.TYPING_SUBCOLLECTION,
        )
        deleted = 0
        try:
            indicators = self.store.list(typing_path)
            for count in delete_in_chunks(self.store, indicators):
                deleted += count
        except Exception as e:
            logger.error(f"Error purging typing indicators for archived conversation {conversation_id}: {e}")
            return CleanupResult(succeeded=False, deleted=deleted, error=str(e))

        if deleted:
            logger.info(f"Purged {deleted} typing indicators for archived conversation {conversation_id}")
        return CleanupResult(succeeded=True, deleted=deleted)

    def _select_conversation(
        self, offer_id: str, matches: List[DocumentSnapshot]
    ) -> Optional[DocumentSnapshot]:
        active = [m for m in matches if m.get("isArchived") is not True]
        if not active:
            return None
        if len(active) > 1:
            raise ConversationConflictError(offer_id, [m.id for m in active])
        return active[0]

    def _commit_archive(self, conversation: DocumentSnapshot, messages: List[DocumentSnapshot]) -> None:
        """
        Write the archive copy and mark the source.

        When everything fits one batch the whole write is atomic. Otherwise the
        leading message copies go first in full-size chunks and the last batch
        carries the remaining copies, the archive record and the source update,
        so the source is only marked once every copy exists.
        """
        archive_collection = self.settings.ARCHIVE_COLLECTION
        archive_messages = subcollection(
            archive_collection, conversation.id, self.settings.MESSAGES_SUBCOLLECTION
        )
        limit = self.store.max_writes

        overflow = max(0, len(messages) - (limit - _FIXED_WRITES))
        leading, final = messages[:overflow], messages[overflow:]

        for chunk in chunked(leading, limit):
            batch = self.store.batch()
            for message in chunk:
                batch.set(archive_messages, message.id, message.data)
            batch.commit()
            logger.debug(f"Committed {len(chunk)} archived messages for conversation {conversation.id}")

        archived_record = dict(conversation.data)
        archived_record["isArchived"] = True
        archived_record["archivedAt"] = self.clock()

        batch = self.store.batch()
        batch.set(archive_collection, conversation.id, archived_record)
        for message in final:
            batch.set(archive_messages, message.id, message.data)
        batch.update(
            self.settings.CONVERSATIONS_COLLECTION,
            conversation.id,
            {"isArchived": True, "archivedAt": self.clock()},
        )
        batch.commit()
