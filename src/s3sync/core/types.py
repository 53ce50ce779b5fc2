"""Shared types for watching and dispatching file changes.

This module provides:
- S3SyncError and its subclasses: the error taxonomy
- ChangeKind, ChangeEvent, EventBatch: debounced filesystem events
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class S3SyncError(Exception):
    """Base exception for s3sync errors."""


# =============================================================================
# Configuration errors (fatal at startup)
# =============================================================================


class ConfigurationError(S3SyncError):
    """Invalid agent configuration (bad pattern, window out of range, ...)."""


class WatchError(ConfigurationError):
    """A physical directory watch could not be started."""


# =============================================================================
# Per-event errors (isolated per agent)
# =============================================================================


class KeyDerivationError(S3SyncError):
    """No object key could be derived for a changed path."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


class PathOutsideRootError(KeyDerivationError):
    """The changed path is not a descendant of the agent's watch root."""

    def __init__(self, path: Path, root: Path) -> None:
        self.root = root
        super().__init__(path, f"Path is not under {root}")


class NonTextPathError(KeyDerivationError):
    """A path component cannot be represented as text."""

    def __init__(self, path: Path) -> None:
        super().__init__(path, "Path is not valid text")


class PatternMismatchError(KeyDerivationError):
    """The relative key does not match the agent's pattern.

    This is a filtering outcome rather than a failure.
    """

    def __init__(self, path: Path, key: str, pattern: str) -> None:
        self.key = key
        self.pattern = pattern
        super().__init__(path, f"Key {key!r} does not match {pattern!r}")


class TransferError(S3SyncError):
    """Failed to transfer a file to the object store."""


class FileUnavailableError(TransferError):
    """The local file could not be opened for reading."""


class UploadRejectedError(TransferError):
    """The object store rejected the upload or the request failed in transit.

    Attributes:
        bucket: Destination bucket.
        key: Destination key.
        detail: Remote error detail.
    """

    def __init__(self, bucket: str, key: str, detail: str) -> None:
        self.bucket = bucket
        self.key = key
        self.detail = detail
        super().__init__(f"Upload to s3://{bucket}/{key} rejected: {detail}")


class DeleteFailedError(S3SyncError):
    """The local file was uploaded but could not be removed afterwards."""


# =============================================================================
# Change events
# =============================================================================


class ChangeKind(Enum):
    """Kind of a debounced change.

    SETTLED: the path has been quiet for a whole debounce window.
    CONTINUOUS: the path is still changing; reported but never acted on.
    """

    SETTLED = "settled"
    CONTINUOUS = "continuous"


@dataclass(frozen=True)
class ChangeEvent:
    """A debounced change to a single path."""

    path: Path
    kind: ChangeKind = ChangeKind.SETTLED

    @property
    def is_settled(self) -> bool:
        return self.kind is ChangeKind.SETTLED


@dataclass(frozen=True)
class EventBatch:
    """Changes delivered together by one watch after a debounce tick.

    Attributes:
        root: Watch root that produced the batch.
        events: Changes in the order the watch first saw them.
    """

    root: Path
    events: tuple[ChangeEvent, ...]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[ChangeEvent]:
        return iter(self.events)
