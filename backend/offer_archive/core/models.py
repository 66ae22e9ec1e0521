"""
ORM models for document persistence.

WHAT: SQLAlchemy model for schemaless documents addressed by collection path
WHY: Offers, conversations, messages and typing indicators share one storage shape
HOW: One row per document, JSON payload, unique (collection, doc_id)
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint, Index

from .database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Document(Base):
    """
    Document table - one stored document.

    WHAT: A record living at `<collection>/<doc_id>`
    WHY: Sub-collections are plain collection paths such as `conversations/c1/messages`
    HOW: Payload stored as encoded JSON (see store.codec)
    """
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(512), nullable=False)
    doc_id = Column(String(255), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="unique_collection_doc"),
        Index("idx_document_collection", "collection"),
    )

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.doc_id}"

    def __repr__(self):
        return f"<Document(path={self.path})>"
