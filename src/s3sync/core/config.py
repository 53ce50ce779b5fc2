"""Configuration values shared by the watcher, the dispatcher and the CLI.

This module defines:
- WatchSettings: per-root debounce window and recursion, with a merge rule
- Agent: one immutable watch-root-to-bucket sync definition
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import reduce
from pathlib import Path

from s3sync.core.types import ConfigurationError

DEFAULT_EVENT_WINDOW_SECONDS = 5
MIN_EVENT_WINDOW_SECONDS = 1
MAX_EVENT_WINDOW_SECONDS = 3600

DEFAULT_PROFILE = "default"

MATCH_EVERYTHING = ".*"


@dataclass(frozen=True)
class WatchSettings:
    """Settings of one physical watch.

    Several agents may share a watch root; their settings are merged with
    combine() so that the single watch satisfies all of them: the shortest
    window and recursion if any agent asked for it.

    Attributes:
        window: Debounce window in seconds (1-3600).
        recursive: Whether subdirectories are watched.
    """

    window: int = DEFAULT_EVENT_WINDOW_SECONDS
    recursive: bool = False

    def __post_init__(self) -> None:
        """Validate the window bounds."""
        if isinstance(self.window, bool) or not isinstance(self.window, int):
            raise ConfigurationError(f"Event window must be an integer, got {self.window!r}")
        if not MIN_EVENT_WINDOW_SECONDS <= self.window <= MAX_EVENT_WINDOW_SECONDS:
            raise ConfigurationError(
                f"Event window must be between {MIN_EVENT_WINDOW_SECONDS} and "
                f"{MAX_EVENT_WINDOW_SECONDS} seconds, got {self.window}"
            )

    def combine(self, other: WatchSettings) -> WatchSettings:
        """Merge two settings; commutative and associative."""
        return WatchSettings(
            window=min(self.window, other.window),
            recursive=self.recursive or other.recursive,
        )

    @staticmethod
    def merge(settings: Iterable[WatchSettings]) -> WatchSettings:
        """Fold a non-empty collection of settings."""
        items = list(settings)
        if not items:
            raise ValueError("merge() requires at least one WatchSettings")
        return reduce(WatchSettings.combine, items)


@dataclass(frozen=True)
class Agent:
    """One configured sync pipeline: a watch root pushed to one bucket.

    Built once from flags or a config file and never mutated afterwards.

    Attributes:
        watch_root: Absolute directory watched for changes.
        bucket: Destination bucket name.
        key_prefix: Prepended verbatim to every derived key.
        pattern: Compiled filter on the root-relative key (None = everything).
        profile: Credential profile name.
        region: Region override; resolved from the profile when None.
        delete_after_upload: Remove the local file after a successful upload.
        settings: Watch settings this agent contributes to its root.
        name: Label used in log output.
    """

    watch_root: Path
    bucket: str
    key_prefix: str | None = None
    pattern: re.Pattern[str] | None = None
    profile: str = DEFAULT_PROFILE
    region: str | None = None
    delete_after_upload: bool = False
    settings: WatchSettings = field(default_factory=WatchSettings)
    name: str = ""

    def __post_init__(self) -> None:
        """Normalize the root and validate required fields."""
        if not self.bucket:
            raise ConfigurationError(f"Agent for {self.watch_root} has no bucket")
        root = Path(self.watch_root).expanduser()
        if not root.is_absolute():
            root = root.resolve()
        object.__setattr__(self, "watch_root", root)
        if not self.name:
            object.__setattr__(self, "name", f"{root}->s3://{self.bucket}/{self.key_prefix or ''}")

    @property
    def pattern_text(self) -> str:
        """Source of the effective pattern."""
        return self.pattern.pattern if self.pattern is not None else MATCH_EVERYTHING

    def owns(self, path: Path) -> bool:
        """Check whether a path is strictly below this agent's watch root."""
        return path != self.watch_root and path.is_relative_to(self.watch_root)
