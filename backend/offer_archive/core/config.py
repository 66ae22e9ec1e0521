"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from datetime import timedelta
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "Offer Conversation Archiver"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Document store
    DATABASE_URL: str = "sqlite:///./data/documents.db"
    MAX_BATCH_WRITES: int = 500  # Max operations per atomic batch

    # Collection layout
    OFFERS_COLLECTION: str = "offers"
    CONVERSATIONS_COLLECTION: str = "conversations"
    ARCHIVE_COLLECTION: str = "archived_conversations"
    MESSAGES_SUBCOLLECTION: str = "messages"
    TYPING_SUBCOLLECTION: str = "typing"

    # Archival
    COMPLETED_STATUS: str = "completed"

    # Presence cleanup
    TYPING_STALE_MINUTES: int = 5

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # Console only when empty

    @field_validator("MAX_BATCH_WRITES")
    @classmethod
    def validate_batch_limit(cls, v: int) -> int:
        """Archival needs room for the conversation copy, the source update and one message."""
        if v < 3:
            raise ValueError("MAX_BATCH_WRITES must be >= 3")
        return v

    @field_validator("TYPING_STALE_MINUTES")
    @classmethod
    def validate_stale_minutes(cls, v: int) -> int:
        """Ensure the staleness window is positive."""
        if v <= 0:
            raise ValueError("TYPING_STALE_MINUTES must be > 0")
        return v

    @property
    def typing_stale_after(self) -> timedelta:
        """Age after which a typing indicator is considered stale."""
        return timedelta(minutes=self.TYPING_STALE_MINUTES)

    class Config:
        # Look for .env in project root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True


# Singleton instance
settings = Settings()
