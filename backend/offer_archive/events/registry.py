"""
Document trigger registry.

WHAT: Route committed document changes to handlers registered by path pattern
WHY: In-process stand-in for the change notification service
HOW: Patterns like "offers/{offerId}" match paths segment by segment and
     extract wildcard params; only the updated edge is delivered
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..store.types import DocumentChange
from ..utils.logger import get_logger
from .types import ChangeEvent, DeliveryReport, EventKind

logger = get_logger(__name__)

Handler = Callable[[ChangeEvent], Any]

_WILDCARD = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")


class DocumentPattern:
    """Document path pattern with {wildcard} segments."""

    def __init__(self, pattern: str):
        self.pattern = pattern.strip("/")
        self._segments = self.pattern.split("/")
        if len(self._segments) % 2 != 0:
            raise ValueError(f"Pattern must address documents, got collection path: {pattern}")

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """
        Match a document path.

        Returns:
            Extracted params, or None when the path does not match
        """
        segments = path.strip("/").split("/")
        if len(segments) != len(self._segments):
            return None

        params: Dict[str, str] = {}
        for expected, actual in zip(self._segments, segments):
            wildcard = _WILDCARD.match(expected)
            if wildcard:
                if not actual:
                    return None
                params[wildcard.group(1)] = actual
            elif expected != actual:
                return None
        return params

    def __repr__(self):
        return f"<DocumentPattern({self.pattern})>"


@dataclass
class Registration:
    name: str
    pattern: DocumentPattern
    kind: EventKind
    handler: Handler


class TriggerRegistry:
    """
    Registered document-update handlers.

    Usage:
        registry = TriggerRegistry()
        registry.on_document_updated("offers/{offerId}", archival.handle)
        store.subscribe(registry.dispatch)
    """

    def __init__(self):
        self._registrations: List[Registration] = []
        self._failures: List[DeliveryReport] = []

    @property
    def registrations(self) -> List[Registration]:
        return list(self._registrations)

    @property
    def failures(self) -> List[DeliveryReport]:
        """Failed deliveries not yet taken by drain_failures()."""
        return list(self._failures)

    def drain_failures(self) -> List[DeliveryReport]:
        """Return and forget the recorded failed deliveries."""
        failures, self._failures = self._failures, []
        return failures

    def on_document_updated(self, pattern: str, handler: Handler, name: Optional[str] = None) -> Registration:
        """Register a handler for updates of documents matching pattern."""
        registration = Registration(
            name=name or getattr(handler, "__qualname__", repr(handler)),
            pattern=DocumentPattern(pattern),
            kind=EventKind.UPDATED,
            handler=handler,
        )
        self._registrations.append(registration)
        logger.info(f"Registered handler {registration.name} for {pattern} ({registration.kind.value})")
        return registration

    def dispatch(self, change: DocumentChange) -> List[DeliveryReport]:
        """
        Deliver a committed change to every matching handler.

        Handler failures are logged, reported and kept in `failures` so callers
        that only committed a write can still see them; retrying is left to them.
        """
        reports: List[DeliveryReport] = []
        for registration in self._registrations:
            params = registration.pattern.match(change.path)
            if params is None:
                continue

            event = ChangeEvent(path=change.path, params=params, before=change.before, after=change.after)
            if event.kind != registration.kind:
                continue

            try:
                registration.handler(event)
                reports.append(DeliveryReport(registration.name, change.path, True))
            except Exception as e:
                logger.error(f"Handler {registration.name} failed for {change.path}: {e}")
                report = DeliveryReport(registration.name, change.path, False, error=str(e), exception=e)
                self._failures.append(report)
                reports.append(report)
        return reports
