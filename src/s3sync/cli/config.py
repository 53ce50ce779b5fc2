"""Agent configuration loading for the s3sync CLI.

Agents come either from command-line flags (one implicit agent) or from a
YAML config file listing several agents:

    agents:
      - path: ~/Downloads
        bucket: my-bucket
        key_prefix: downloads/
        pattern: '\\.pdf$'
        delete: true
      - path: ~/Downloads
        bucket: archive-bucket
        recursive: true
        window: 30

JSON is accepted too, since it is valid YAML.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from s3sync.core.config import (
    DEFAULT_EVENT_WINDOW_SECONDS,
    DEFAULT_PROFILE,
    MAX_EVENT_WINDOW_SECONDS,
    MIN_EVENT_WINDOW_SECONDS,
    Agent,
    WatchSettings,
)
from s3sync.core.types import ConfigurationError
from s3sync.sync.matcher import compile_pattern


class AgentDefinition(BaseModel):
    """One agent entry of a config file."""

    model_config = ConfigDict(extra="forbid")

    path: Path
    bucket: str = Field(min_length=1)
    key_prefix: str | None = Field(
        default=None,
        validation_alias=AliasChoices("key_prefix", "key-prefix", "prefix"),
    )
    pattern: str | None = None
    profile: str = DEFAULT_PROFILE
    region: str | None = None
    delete: bool = False
    recursive: bool = False
    window: int = Field(
        default=DEFAULT_EVENT_WINDOW_SECONDS,
        ge=MIN_EVENT_WINDOW_SECONDS,
        le=MAX_EVENT_WINDOW_SECONDS,
    )
    name: str | None = None

    def to_agent(self, base_dir: Path | None = None) -> Agent:
        """Build the immutable Agent.

        Args:
            base_dir: Directory relative paths are resolved against
                (current directory if None).

        Raises:
            ConfigurationError: If the pattern does not compile.
        """
        return build_agent(
            path=self.path,
            bucket=self.bucket,
            key_prefix=self.key_prefix,
            pattern=self.pattern,
            profile=self.profile,
            region=self.region,
            delete=self.delete,
            recursive=self.recursive,
            window=self.window,
            name=self.name,
            base_dir=base_dir,
        )


class ConfigFile(BaseModel):
    """Top-level config file document."""

    model_config = ConfigDict(extra="forbid")

    agents: list[AgentDefinition] = Field(min_length=1)


def build_agent(
    path: Path | str,
    bucket: str | None,
    key_prefix: str | None = None,
    pattern: str | None = None,
    profile: str | None = None,
    region: str | None = None,
    delete: bool = False,
    recursive: bool = False,
    window: int = DEFAULT_EVENT_WINDOW_SECONDS,
    name: str | None = None,
    base_dir: Path | None = None,
) -> Agent:
    """Validate and default one agent's settings.

    Raises:
        ConfigurationError: On a missing bucket, bad pattern or bad window.
    """
    if not bucket:
        raise ConfigurationError(f"A bucket is required to sync {path}")

    root = Path(path).expanduser()
    if not root.is_absolute() and base_dir is not None:
        root = base_dir / root
    root = root.resolve()

    return Agent(
        watch_root=root,
        bucket=bucket,
        key_prefix=key_prefix or None,
        pattern=compile_pattern(pattern),
        profile=profile or DEFAULT_PROFILE,
        region=region or None,
        delete_after_upload=delete,
        settings=WatchSettings(window=window, recursive=recursive),
        name=name or "",
    )


def load_config_file(config_path: Path) -> list[Agent]:
    """Load every agent from a YAML config file.

    Relative agent paths are resolved against the config file's directory.

    Args:
        config_path: Path to the config file.

    Returns:
        Agents in file order.

    Raises:
        ConfigurationError: If the file is unreadable or invalid.
    """
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        raise ConfigurationError(f"Config file is empty: {config_path}")

    try:
        config = ConfigFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file {config_path}:\n{e}") from e

    base_dir = config_path.expanduser().resolve().parent
    return [definition.to_agent(base_dir) for definition in config.agents]
