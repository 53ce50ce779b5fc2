"""Tests for watch settings and agent configuration values."""

import re
from pathlib import Path

import pytest

from s3sync.core.config import (
    DEFAULT_EVENT_WINDOW_SECONDS,
    DEFAULT_PROFILE,
    MATCH_EVERYTHING,
    Agent,
    WatchSettings,
)
from s3sync.core.types import ConfigurationError


class TestWatchSettings:
    """Tests for WatchSettings validation and merging."""

    def test_defaults(self) -> None:
        """Should default to a 5 second non-recursive watch."""
        settings = WatchSettings()

        assert settings.window == DEFAULT_EVENT_WINDOW_SECONDS == 5
        assert settings.recursive is False

    @pytest.mark.parametrize("window", [1, 60, 3600])
    def test_window_bounds_accepted(self, window: int) -> None:
        """Should accept windows from 1 to 3600 seconds."""
        assert WatchSettings(window=window).window == window

    @pytest.mark.parametrize("window", [0, -5, 3601])
    def test_window_out_of_range(self, window: int) -> None:
        """Should reject windows outside 1-3600."""
        with pytest.raises(ConfigurationError, match="between 1 and 3600"):
            WatchSettings(window=window)

    @pytest.mark.parametrize("window", [2.5, "10", True])
    def test_window_must_be_integer(self, window: object) -> None:
        """Should reject non-integer windows."""
        with pytest.raises(ConfigurationError, match="integer"):
            WatchSettings(window=window)  # type: ignore[arg-type]

    def test_combine_takes_shortest_window_and_any_recursion(self) -> None:
        """Should merge (10, False) and (3, True) into (3, True)."""
        merged = WatchSettings(window=10).combine(WatchSettings(window=3, recursive=True))

        assert merged == WatchSettings(window=3, recursive=True)

    def test_combine_is_commutative(self) -> None:
        """Should give the same result in either order."""
        a = WatchSettings(window=7, recursive=True)
        b = WatchSettings(window=12)

        assert a.combine(b) == b.combine(a)

    def test_combine_is_associative(self) -> None:
        """Should give the same result regardless of grouping."""
        a = WatchSettings(window=30)
        b = WatchSettings(window=2)
        c = WatchSettings(window=9, recursive=True)

        assert a.combine(b).combine(c) == a.combine(b.combine(c))

    def test_merge_single_is_identity(self) -> None:
        """Should return the only settings unchanged."""
        settings = WatchSettings(window=600)

        assert WatchSettings.merge([settings]) == settings

    def test_merge_keeps_long_windows(self) -> None:
        """Should not cap windows at the default."""
        merged = WatchSettings.merge([WatchSettings(window=60), WatchSettings(window=30)])

        assert merged.window == 30

    def test_merge_empty(self) -> None:
        """Should refuse to merge nothing."""
        with pytest.raises(ValueError):
            WatchSettings.merge([])


class TestAgent:
    """Tests for the Agent value."""

    def test_defaults(self, tmp_path: Path) -> None:
        """Should fill defaults for optional fields."""
        agent = Agent(watch_root=tmp_path, bucket="bucket")

        assert agent.key_prefix is None
        assert agent.pattern is None
        assert agent.pattern_text == MATCH_EVERYTHING
        assert agent.profile == DEFAULT_PROFILE
        assert agent.region is None
        assert agent.delete_after_upload is False
        assert agent.settings == WatchSettings()

    def test_bucket_required(self, tmp_path: Path) -> None:
        """Should reject an empty bucket."""
        with pytest.raises(ConfigurationError, match="no bucket"):
            Agent(watch_root=tmp_path, bucket="")

    def test_default_name(self, tmp_path: Path) -> None:
        """Should label the agent with its root and destination."""
        agent = Agent(watch_root=tmp_path, bucket="bucket", key_prefix="in/")

        assert agent.name == f"{tmp_path}->s3://bucket/in/"

    def test_relative_root_is_resolved(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should make a relative watch root absolute."""
        monkeypatch.chdir(tmp_path)

        agent = Agent(watch_root=Path("data"), bucket="bucket")

        assert agent.watch_root == (tmp_path / "data").resolve()

    def test_pattern_text(self, tmp_path: Path) -> None:
        """Should report the source of a compiled pattern."""
        agent = Agent(watch_root=tmp_path, bucket="bucket", pattern=re.compile(r"\.csv$"))

        assert agent.pattern_text == r"\.csv$"

    def test_owns_descendants_only(self, tmp_path: Path) -> None:
        """Should own paths strictly below the root."""
        agent = Agent(watch_root=tmp_path, bucket="bucket")

        assert agent.owns(tmp_path / "file.txt") is True
        assert agent.owns(tmp_path / "sub" / "file.txt") is True
        assert agent.owns(tmp_path) is False
        assert agent.owns(tmp_path.parent / "other.txt") is False

    def test_is_immutable(self, tmp_path: Path) -> None:
        """Should not allow fields to change after construction."""
        agent = Agent(watch_root=tmp_path, bucket="bucket")

        with pytest.raises(AttributeError):
            agent.bucket = "other"  # type: ignore[misc]
