"""
Custom business exceptions for the document store and archival workflow.

WHAT: Domain-specific exceptions with stable error codes
WHY: Callers and logs can tell store failures from workflow inconsistencies
HOW: Custom exception classes with error codes, messages and details
"""

from typing import Optional, Any, List


class BusinessException(Exception):
    """Base class for business logic exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class DocumentNotFoundError(BusinessException):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, path: str):
        super().__init__(
            message=f"Document not found: {path}",
            code="DOCUMENT_NOT_FOUND",
            details={"path": path}
        )


class BatchLimitExceededError(BusinessException):
    """Raised when a batch holds more operations than the store accepts."""

    def __init__(self, count: int, max_allowed: int):
        super().__init__(
            message=f"Maximum {max_allowed} writes per batch allowed, got {count}",
            code="BATCH_LIMIT_EXCEEDED",
            details={"count": count, "max_allowed": max_allowed}
        )


class BatchAlreadyCommittedError(BusinessException):
    """Raised when a batch is reused after commit."""

    def __init__(self):
        super().__init__(
            message="Batch has already been committed",
            code="BATCH_ALREADY_COMMITTED"
        )


class InvalidQueryError(BusinessException):
    """Raised for unsupported query operators."""

    def __init__(self, op: str, supported: List[str]):
        super().__init__(
            message=f"Unsupported query operator '{op}'",
            code="INVALID_QUERY",
            details={"op": op, "supported": supported}
        )


class ConversationConflictError(BusinessException):
    """Raised when more than one active conversation references an offer."""

    def __init__(self, offer_id: str, conversation_ids: List[str]):
        super().__init__(
            message=(
                f"Offer {offer_id} has {len(conversation_ids)} active conversations, "
                f"expected one: {', '.join(conversation_ids)}"
            ),
            code="CONVERSATION_CONFLICT",
            details={"offer_id": offer_id, "conversation_ids": conversation_ids}
        )
