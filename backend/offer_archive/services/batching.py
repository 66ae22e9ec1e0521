"""
Batch chunking helpers.

WHAT: Split large write sets into store-sized batches
WHY: The store rejects batches above its write limit
HOW: Sequential commits; each chunk is atomic on its own
"""

from typing import Iterator, List, Sequence, TypeVar

from ..store import DocumentSnapshot, DocumentStore

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most size items."""
    if size < 1:
        raise ValueError("Chunk size must be >= 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def delete_in_chunks(store: DocumentStore, snapshots: Sequence[DocumentSnapshot]) -> Iterator[int]:
    """
    Delete documents in as few batches as the store allows.

    Yields:
        Number of documents deleted by each committed batch
    """
    for chunk in chunked(snapshots, store.max_writes):
        batch = store.batch()
        for snapshot in chunk:
            batch.delete(snapshot.collection, snapshot.id)
        batch.commit()
        yield len(chunk)
