"""Tests for agent configuration loading."""

import json
from pathlib import Path

import pytest

from s3sync.cli.config import AgentDefinition, build_agent, load_config_file
from s3sync.core.config import DEFAULT_PROFILE, WatchSettings
from s3sync.core.types import ConfigurationError


class TestBuildAgent:
    """Tests for build_agent."""

    def test_defaults(self, tmp_path: Path) -> None:
        """Should fill defaults for everything but path and bucket."""
        agent = build_agent(tmp_path, "bucket")

        assert agent.watch_root == tmp_path.resolve()
        assert agent.key_prefix is None
        assert agent.pattern is None
        assert agent.profile == DEFAULT_PROFILE
        assert agent.region is None
        assert agent.delete_after_upload is False
        assert agent.settings == WatchSettings()

    def test_all_options(self, tmp_path: Path) -> None:
        """Should carry every option onto the agent."""
        agent = build_agent(
            tmp_path,
            "bucket",
            key_prefix="in/",
            pattern=r"\.pdf$",
            profile="work",
            region="eu-west-3",
            delete=True,
            recursive=True,
            window=120,
            name="pdfs",
        )

        assert agent.key_prefix == "in/"
        assert agent.pattern_text == r"\.pdf$"
        assert agent.profile == "work"
        assert agent.region == "eu-west-3"
        assert agent.delete_after_upload is True
        assert agent.settings == WatchSettings(window=120, recursive=True)
        assert agent.name == "pdfs"

    def test_missing_bucket(self, tmp_path: Path) -> None:
        """Should reject a missing bucket."""
        with pytest.raises(ConfigurationError, match="bucket is required"):
            build_agent(tmp_path, None)

    def test_invalid_pattern(self, tmp_path: Path) -> None:
        """Should reject a pattern that does not compile."""
        with pytest.raises(ConfigurationError, match="Invalid pattern"):
            build_agent(tmp_path, "bucket", pattern="[")

    def test_invalid_window(self, tmp_path: Path) -> None:
        """Should reject an out-of-range window."""
        with pytest.raises(ConfigurationError):
            build_agent(tmp_path, "bucket", window=4000)

    def test_empty_prefix_is_none(self, tmp_path: Path) -> None:
        """Should treat an empty prefix as no prefix."""
        assert build_agent(tmp_path, "bucket", key_prefix="").key_prefix is None

    def test_relative_to_base_dir(self, tmp_path: Path) -> None:
        """Should resolve relative paths against base_dir."""
        agent = build_agent("data", "bucket", base_dir=tmp_path)

        assert agent.watch_root == (tmp_path / "data").resolve()

    def test_expands_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should expand ~ in paths."""
        monkeypatch.setenv("HOME", str(tmp_path))

        agent = build_agent("~/Downloads", "bucket")

        assert agent.watch_root == (tmp_path / "Downloads").resolve()


class TestAgentDefinition:
    """Tests for the config file agent schema."""

    @pytest.mark.parametrize("alias", ["key_prefix", "key-prefix", "prefix"])
    def test_prefix_aliases(self, alias: str, tmp_path: Path) -> None:
        """Should accept every spelling of the key prefix."""
        definition = AgentDefinition.model_validate(
            {"path": str(tmp_path), "bucket": "b", alias: "in/"}
        )

        assert definition.to_agent().key_prefix == "in/"

    def test_unknown_field(self, tmp_path: Path) -> None:
        """Should reject unknown keys."""
        with pytest.raises(ValueError):
            AgentDefinition.model_validate({"path": str(tmp_path), "bucket": "b", "colour": "red"})


class TestLoadConfigFile:
    """Tests for load_config_file."""

    def test_yaml(self, tmp_path: Path) -> None:
        """Should load every agent in file order."""
        config = tmp_path / "agents.yaml"
        config.write_text(
            "agents:\n"
            f"  - path: {tmp_path}\n"
            "    bucket: first\n"
            "    window: 30\n"
            f"  - path: {tmp_path}\n"
            "    bucket: second\n"
            "    profile: backup\n"
            "    region: us-west-2\n"
        )

        agents = load_config_file(config)

        assert [a.bucket for a in agents] == ["first", "second"]
        assert agents[0].settings.window == 30
        assert agents[1].profile == "backup"
        assert agents[1].region == "us-west-2"

    def test_json(self, tmp_path: Path) -> None:
        """Should accept JSON documents."""
        config = tmp_path / "agents.json"
        config.write_text(
            json.dumps({"agents": [{"path": str(tmp_path), "bucket": "b", "delete": True}]})
        )

        (agent,) = load_config_file(config)

        assert agent.delete_after_upload is True

    def test_relative_paths_follow_config_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Should resolve relative agent paths against the config file's directory."""
        conf_dir = tmp_path / "conf"
        conf_dir.mkdir()
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        config = conf_dir / "agents.yaml"
        config.write_text("agents:\n  - path: inbox\n    bucket: b\n")
        monkeypatch.chdir(elsewhere)

        (agent,) = load_config_file(config)

        assert agent.watch_root == (conf_dir / "inbox").resolve()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should report an unreadable file."""
        with pytest.raises(ConfigurationError, match="Cannot read config file"):
            load_config_file(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        """Should report an empty file."""
        config = tmp_path / "empty.yaml"
        config.write_text("")

        with pytest.raises(ConfigurationError, match="empty"):
            load_config_file(config)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Should report malformed YAML."""
        config = tmp_path / "bad.yaml"
        config.write_text("agents: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config_file(config)

    @pytest.mark.parametrize(
        "body",
        [
            "agents: []\n",
            "agents:\n  - path: /tmp\n",
            "agents:\n  - path: /tmp\n    bucket: b\n    window: 0\n",
            "agents:\n  - path: /tmp\n    bucket: b\n    window: 3601\n",
            "something_else: 1\n",
        ],
    )
    def test_invalid_schema(self, tmp_path: Path, body: str) -> None:
        """Should report documents that do not describe valid agents."""
        config = tmp_path / "invalid.yaml"
        config.write_text(body)

        with pytest.raises(ConfigurationError, match="Invalid config file"):
            load_config_file(config)

    def test_invalid_pattern(self, tmp_path: Path) -> None:
        """Should report a pattern that does not compile."""
        config = tmp_path / "agents.yaml"
        config.write_text(f"agents:\n  - path: {tmp_path}\n    bucket: b\n    pattern: '('\n")

        with pytest.raises(ConfigurationError, match="Invalid pattern"):
            load_config_file(config)
