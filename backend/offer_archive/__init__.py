"""Archive offer conversations on completion and sweep stale typing indicators."""

from .main import ArchiveService, build_service

__all__ = ["ArchiveService", "build_service"]
