"""
Service entry point.

WHAT: Process-start wiring of store, handlers and change notifications
WHY: The store is created once and injected into both handlers
HOW: Build the store, register handlers on their document patterns,
     subscribe the registry to committed changes
"""

from dataclasses import dataclass
from typing import Optional

from .core.config import Settings, settings as default_settings
from .core.database import Database
from .events import TriggerRegistry
from .services.archival_trigger import ArchivalTrigger
from .services.presence_janitor import PresenceJanitor
from .store import DocumentStore
from .utils.clock import Clock, utc_now
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass
class ArchiveService:
    """Wired handlers sharing one document store."""
    settings: Settings
    store: DocumentStore
    registry: TriggerRegistry
    archival: ArchivalTrigger
    janitor: PresenceJanitor

    def close(self):
        self.store.unsubscribe(self.registry.dispatch)
        self.store.database.close()
        logger.info("Archive service shut down")


def build_service(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    clock: Optional[Clock] = None,
    configure_logging: bool = False,
) -> ArchiveService:
    """
    Create the store (unless given), both handlers and their registrations.

    Args:
        settings: Settings to use (defaults to the process settings)
        store: Existing store to share, e.g. an in-memory one in tests
        clock: Time source injected into both handlers
        configure_logging: Install console/file log handlers from settings

    Returns:
        ArchiveService ready to receive document changes
    """
    settings = settings or default_settings
    clock = clock or utc_now
    if configure_logging:
        setup_logging(settings)

    if store is None:
        database = Database(settings.DATABASE_URL, echo=settings.DEBUG)
        database.init()
        store = DocumentStore(database, max_writes=settings.MAX_BATCH_WRITES)

    archival = ArchivalTrigger(store, settings=settings, clock=clock)
    janitor = PresenceJanitor(store, settings=settings, clock=clock)

    registry = TriggerRegistry()
    registry.on_document_updated(
        f"{settings.OFFERS_COLLECTION}/{{offerId}}", archival.handle, name="archive_conversation_on_offer_complete"
    )
    registry.on_document_updated(
        f"{settings.CONVERSATIONS_COLLECTION}/{{conversationId}}", janitor.handle, name="cleanup_typing_indicators"
    )
    store.subscribe(registry.dispatch)

    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} ready ({store!r})")
    return ArchiveService(
        settings=settings,
        store=store,
        registry=registry,
        archival=archival,
        janitor=janitor,
    )
