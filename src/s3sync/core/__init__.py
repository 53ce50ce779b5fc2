"""Core module - Agent configuration, watch settings, events and errors."""

from s3sync.core.config import (
    DEFAULT_EVENT_WINDOW_SECONDS,
    DEFAULT_PROFILE,
    MAX_EVENT_WINDOW_SECONDS,
    MIN_EVENT_WINDOW_SECONDS,
    Agent,
    WatchSettings,
)
from s3sync.core.types import (
    ChangeEvent,
    ChangeKind,
    ConfigurationError,
    DeleteFailedError,
    EventBatch,
    FileUnavailableError,
    KeyDerivationError,
    NonTextPathError,
    PathOutsideRootError,
    PatternMismatchError,
    S3SyncError,
    TransferError,
    UploadRejectedError,
    WatchError,
)

__all__ = [
    # Configuration
    "Agent",
    "DEFAULT_EVENT_WINDOW_SECONDS",
    "DEFAULT_PROFILE",
    "MAX_EVENT_WINDOW_SECONDS",
    "MIN_EVENT_WINDOW_SECONDS",
    "WatchSettings",
    # Events
    "ChangeEvent",
    "ChangeKind",
    "EventBatch",
    # Errors
    "ConfigurationError",
    "DeleteFailedError",
    "FileUnavailableError",
    "KeyDerivationError",
    "NonTextPathError",
    "PathOutsideRootError",
    "PatternMismatchError",
    "S3SyncError",
    "TransferError",
    "UploadRejectedError",
    "WatchError",
]
