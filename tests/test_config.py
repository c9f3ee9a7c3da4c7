"""Tests for configuration loading and management."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from wayfarer.config import Config, get_default_config, load_config


class TestConfigLoader:
    """Tests for load_config function."""

    def test_load_default_config(self) -> None:
        """Test loading the packaged default configuration."""
        config = load_config()

        assert config.scheduler is not None
        assert config.goals is not None
        assert config.threat is not None
        assert config.retreat is not None
        assert config.navigation is not None
        assert config.advisory is not None
        assert config.logging is not None

    def test_default_file_matches_model_defaults(self) -> None:
        """Test that default.yaml agrees with the model defaults."""
        assert load_config() == get_default_config()

    def test_load_default_values(self) -> None:
        """Test a sample of default values."""
        config = load_config()

        assert config.scheduler.goal_tick_seconds == 5.0
        assert config.scheduler.threat_tick_seconds == 3.0
        assert config.scheduler.max_consecutive_failures == 2
        assert config.threat.scan_radius == 64.0
        assert config.threat.danger_scores["creeper"] == 100
        assert config.retreat.cooldown_seconds == 15.0
        assert config.retreat.settle_seconds == 5.0
        assert config.advisory.enabled is False
        assert config.advisory.max_calls_per_hour == 100

    def test_load_custom_config_file(self, tmp_path: Path) -> None:
        """Test loading from a custom config file path."""
        custom_config = {
            "scheduler": {"goal_tick_seconds": 2.0},
            "goals": {"seed": 7, "preferences": {"mining": 0.9}},
        }
        config_file = tmp_path / "custom.yaml"
        with open(config_file, "w") as f:
            yaml.dump(custom_config, f)

        config = load_config(config_file)

        assert config.scheduler.goal_tick_seconds == 2.0
        assert config.goals.seed == 7
        assert config.goals.preferences.mining == 0.9
        # Unspecified fields keep their defaults
        assert config.goals.preferences.gathering == 0.5
        assert config.scheduler.threat_tick_seconds == 3.0

    def test_missing_config_file_raises_error(self) -> None:
        """Test that a missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/path/config.yaml")

    def test_empty_config_file_uses_defaults(self, tmp_path: Path) -> None:
        """Test that an empty config file uses all defaults."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        config = load_config(config_file)

        assert config == Config()

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        """Test that out-of-range values fail validation."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("retreat:\n  escape_distance: 50\n")

        with pytest.raises(ValidationError):
            load_config(config_file)

    def test_invalid_provider_rejected(self) -> None:
        """Test that only known advisory providers are accepted."""
        with pytest.raises(ValidationError):
            Config(advisory={"provider": "mystery"})


class TestEnvironmentOverrides:
    """Tests for environment variable overrides."""

    def _write(self, tmp_path: Path, data: dict) -> Path:
        config_file = tmp_path / "test.yaml"
        with open(config_file, "w") as f:
            yaml.dump(data, f)
        return config_file

    def test_env_override_float_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variables override YAML values."""
        config_file = self._write(tmp_path, {"scheduler": {"goal_tick_seconds": 5.0}})
        monkeypatch.setenv("WAYFARER_SCHEDULER__GOAL_TICK_SECONDS", "2.5")

        config = load_config(config_file)

        assert config.scheduler.goal_tick_seconds == 2.5

    def test_env_override_int_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test integer conversion."""
        config_file = self._write(tmp_path, {"advisory": {"max_calls_per_hour": 100}})
        monkeypatch.setenv("WAYFARER_ADVISORY__MAX_CALLS_PER_HOUR", "10")

        config = load_config(config_file)

        assert config.advisory.max_calls_per_hour == 10

    def test_env_override_boolean_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test boolean conversion."""
        config_file = self._write(tmp_path, {"advisory": {"enabled": False}})
        monkeypatch.setenv("WAYFARER_ADVISORY__ENABLED", "true")

        config = load_config(config_file)

        assert config.advisory.enabled is True

    def test_env_override_nested_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test overrides two levels deep."""
        config_file = self._write(tmp_path, {"goals": {"preferences": {"mining": 0.4}}})
        monkeypatch.setenv("WAYFARER_GOALS__PREFERENCES__MINING", "0.8")

        config = load_config(config_file)

        assert config.goals.preferences.mining == 0.8

    def test_env_override_list_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test comma-separated list conversion."""
        config_file = self._write(tmp_path, {"threat": {"explosive_categories": ["creeper"]}})
        monkeypatch.setenv("WAYFARER_THREAT__EXPLOSIVE_CATEGORIES", "creeper, ghast")

        config = load_config(config_file)

        assert config.threat.explosive_categories == ["creeper", "ghast"]

    def test_env_override_string_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test string values pass through."""
        config_file = self._write(tmp_path, {"advisory": {"provider": "anthropic"}})
        monkeypatch.setenv("WAYFARER_ADVISORY__PROVIDER", "openai")

        config = load_config(config_file)

        assert config.advisory.provider == "openai"

    def test_keys_absent_from_yaml_are_not_overridden(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that only keys present in the file can be overridden."""
        config_file = self._write(tmp_path, {"scheduler": {"goal_tick_seconds": 5.0}})
        monkeypatch.setenv("WAYFARER_SCHEDULER__THREAT_TICK_SECONDS", "1.0")

        config = load_config(config_file)

        assert config.scheduler.threat_tick_seconds == 3.0
