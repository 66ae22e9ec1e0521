"""
Unit tests for the trigger registry.

WHAT: Test path pattern matching and update-edge delivery
WHY: Handlers must only see updates of the documents they are bound to
HOW: Dispatch hand-built DocumentChange records to recording handlers
"""

import pytest

from offer_archive.events import ChangeEvent, DocumentPattern, EventKind, TriggerRegistry
from offer_archive.store import DocumentChange


@pytest.mark.unit
class TestDocumentPattern:
    """Test pattern matching and parameter extraction."""

    def test_extracts_wildcard(self):
        assert DocumentPattern("offers/{offerId}").match("offers/o1") == {"offerId": "o1"}

    def test_nested_pattern(self):
        pattern = DocumentPattern("conversations/{conversationId}/typing/{userId}")

        assert pattern.match("conversations/c1/typing/u1") == {"conversationId": "c1", "userId": "u1"}

    @pytest.mark.parametrize("path", [
        "conversations/c1",
        "offers/o1/history/h1",
        "offers",
        "archived_offers/o1",
    ])
    def test_non_matching_paths(self, path):
        assert DocumentPattern("offers/{offerId}").match(path) is None

    def test_collection_pattern_rejected(self):
        with pytest.raises(ValueError, match="must address documents"):
            DocumentPattern("offers")


@pytest.mark.unit
class TestDispatch:
    """Test delivery of committed changes."""

    @pytest.fixture
    def received(self):
        return []

    @pytest.fixture
    def registry(self, received):
        registry = TriggerRegistry()
        registry.on_document_updated("offers/{offerId}", received.append, name="offers")
        return registry

    def test_update_is_delivered(self, registry, received):
        reports = registry.dispatch(DocumentChange("offers", "o1", {"status": "pending"}, {"status": "completed"}))

        assert len(received) == 1
        event = received[0]
        assert isinstance(event, ChangeEvent)
        assert event.kind == EventKind.UPDATED
        assert event.params == {"offerId": "o1"}
        assert event.before["status"] == "pending"
        assert event.after["status"] == "completed"
        assert reports[0].succeeded is True
        assert reports[0].handler == "offers"

    def test_creation_and_deletion_are_not_delivered(self, registry, received):
        registry.dispatch(DocumentChange("offers", "o1", None, {"status": "pending"}))
        registry.dispatch(DocumentChange("offers", "o1", {"status": "pending"}, None))

        assert received == []

    def test_other_paths_are_not_delivered(self, registry, received):
        reports = registry.dispatch(DocumentChange("conversations", "c1", {"a": 1}, {"a": 2}))

        assert received == []
        assert reports == []

    def test_handler_failure_is_reported(self, registry, received):
        def broken(event):
            raise RuntimeError("handler crashed")

        registry.on_document_updated("offers/{offerId}", broken, name="broken")

        reports = registry.dispatch(DocumentChange("offers", "o1", {"status": "a"}, {"status": "b"}))

        assert [r.succeeded for r in reports] == [True, False]
        assert reports[1].error == "handler crashed"
        assert len(received) == 1

    def test_failures_are_kept_until_drained(self, registry):
        def broken(event):
            raise RuntimeError("handler crashed")

        registry.on_document_updated("offers/{offerId}", broken, name="broken")
        registry.dispatch(DocumentChange("offers", "o1", {"status": "a"}, {"status": "b"}))
        registry.dispatch(DocumentChange("offers", "o2", {"status": "a"}, {"status": "b"}))

        failures = registry.drain_failures()

        assert [(f.handler, f.path) for f in failures] == [("broken", "offers/o1"), ("broken", "offers/o2")]
        assert isinstance(failures[0].exception, RuntimeError)
        assert registry.failures == []

    def test_successful_delivery_records_no_failure(self, registry):
        registry.dispatch(DocumentChange("offers", "o1", {"status": "a"}, {"status": "b"}))

        assert registry.failures == []

    def test_registrations_listed(self, registry):
        names = [r.name for r in registry.registrations]

        assert names == ["offers"]
