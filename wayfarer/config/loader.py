"""Configuration loader for the decision core.

Loads configuration from YAML files and environment variables.
Environment variables override YAML values using the WAYFARER_ prefix.
Nested keys use double underscores: WAYFARER_SCHEDULER__GOAL_TICK_SECONDS=2
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"

# Category danger scores (higher = more dangerous).
DEFAULT_DANGER_SCORES: dict[str, float] = {
    "creeper": 100,
    "ravager": 95,
    "piglin_brute": 90,
    "wither_skeleton": 85,
    "ghast": 85,
    "elder_guardian": 85,
    "skeleton": 80,
    "evoker": 80,
    "blaze": 75,
    "vindicator": 75,
    "shulker": 75,
    "pillager": 75,
    "witch": 70,
    "hoglin": 70,
    "guardian": 70,
    "cave_spider": 65,
    "vex": 65,
    "spider": 60,
    "phantom": 55,
    "enderman": 50,
    "zombified_piglin": 45,
    "drowned": 45,
    "zombie": 40,
    "magma_cube": 35,
    "slime": 30,
    "silverfish": 25,
}


class SchedulerConfig(BaseModel):
    """Goal loop and threat loop settings."""

    goal_tick_seconds: float = Field(default=5.0, gt=0, le=300)
    threat_tick_seconds: float = Field(default=3.0, gt=0, le=300)
    max_consecutive_failures: int = Field(default=2, ge=1, le=100)
    max_generation_resets: int = Field(default=1, ge=0, le=2)
    advisory_interval_ticks: int = Field(default=5, ge=1, le=1000)
    error_escalation_threshold: int = Field(default=5, ge=1, le=1000)


class PreferenceConfig(BaseModel):
    """Bernoulli probabilities for optional goals."""

    mining: float = Field(default=0.4, ge=0.0, le=1.0)
    exploring: float = Field(default=0.3, ge=0.0, le=1.0)
    building: float = Field(default=0.2, ge=0.0, le=1.0)
    farming: float = Field(default=0.15, ge=0.0, le=1.0)
    gathering: float = Field(default=0.5, ge=0.0, le=1.0)
    crafting: float = Field(default=0.3, ge=0.0, le=1.0)
    upgrading: float = Field(default=0.2, ge=0.0, le=1.0)
    advanced_base: float = Field(default=0.1, ge=0.0, le=1.0)
    night_mining_multiplier: float = Field(default=1.5, ge=0.0, le=10.0)


class GoalsConfig(BaseModel):
    """Goal generation settings."""

    min_health_percent: float = Field(default=60.0, ge=0.0, le=100.0)
    min_food_level: float = Field(default=10.0, ge=0.0)
    seed: int | None = Field(default=None, description="Seed for stochastic goal emission")
    action_ids: dict[str, str] = Field(
        default_factory=dict, description="Overrides for the action id each goal kind performs"
    )
    preferences: PreferenceConfig = Field(default_factory=PreferenceConfig)


class ThreatConfig(BaseModel):
    """Threat assessment settings."""

    scan_radius: float = Field(default=64.0, gt=0)
    immediate_radius: float = Field(default=16.0, gt=0)
    critical_radius: float = Field(default=8.0, gt=0)
    total_score_ceiling: float = Field(default=150.0, gt=0)
    fightable_threshold: float = Field(default=70.0, ge=0)
    low_health_percent: float = Field(default=40.0, ge=0.0, le=100.0)
    explosive_categories: list[str] = Field(default_factory=lambda: ["creeper"])
    explosive_band: float = Field(default=12.0, gt=0)
    high_danger_threshold: float = Field(default=70.0, ge=0)
    high_danger_band: float = Field(default=24.0, gt=0)
    danger_zone_cell_size: float = Field(default=16.0, gt=0)
    danger_zone_expiry_seconds: float = Field(default=600.0, gt=0)
    danger_zone_min_encounters: int = Field(default=3, ge=1)
    encounter_history_size: int = Field(default=100, ge=1)
    danger_scores: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_DANGER_SCORES))

    @model_validator(mode="after")
    def _check_radii(self) -> ThreatConfig:
        if not self.critical_radius <= self.immediate_radius <= self.scan_radius:
            raise ValueError("radii must satisfy critical <= immediate <= scan")
        return self


class RetreatConfig(BaseModel):
    """Retreat/cooldown state machine settings."""

    cooldown_seconds: float = Field(default=15.0, ge=0)
    settle_seconds: float = Field(default=5.0, ge=0)
    escape_distance: float = Field(default=20.0, ge=20.0, le=32.0)
    arrival_radius: float = Field(default=5.0, gt=0)
    navigation_timeout_seconds: float = Field(default=15.0, gt=0)
    heal_wait_seconds: float = Field(default=30.0, ge=0)
    heal_poll_seconds: float = Field(default=1.0, gt=0)
    max_health: float = Field(default=20.0, gt=0)
    consume_action: str = Field(default="consume", min_length=1)
    attack_action: str = Field(default="attack", min_length=1)


class NavigationConfig(BaseModel):
    """Timeouts for navigation calls issued by goal handlers and combat."""

    default_timeout_seconds: float = Field(default=5.0, gt=0, le=60)
    explore_timeout_seconds: float = Field(default=8.0, gt=0, le=60)
    approach_timeout_seconds: float = Field(default=5.0, gt=0, le=60)
    explore_radius: float = Field(default=100.0, gt=0)


class AdvisoryConfig(BaseModel):
    """Optional advisory service settings."""

    enabled: bool = Field(default=False)
    provider: str = Field(default="anthropic", pattern="^(anthropic|openai)$")
    model: str | None = Field(default=None)
    timeout_seconds: float = Field(default=2.0, gt=0, le=60)
    cache_ttl_seconds: float = Field(default=300.0, ge=0)
    cache_size: int = Field(default=100, ge=1, le=10000)
    max_calls_per_hour: int = Field(default=100, ge=0)
    max_tokens: int = Field(default=512, ge=1, le=100000)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="readable", pattern="^(readable|json)$")


class Config(BaseModel):
    """Root configuration model."""

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    goals: GoalsConfig = Field(default_factory=GoalsConfig)
    threat: ThreatConfig = Field(default_factory=ThreatConfig)
    retreat: RetreatConfig = Field(default_factory=RetreatConfig)
    navigation: NavigationConfig = Field(default_factory=NavigationConfig)
    advisory: AdvisoryConfig = Field(default_factory=AdvisoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _get_env_value(key: str) -> str | None:
    """Get environment variable with WAYFARER_ prefix."""
    env_key = f"WAYFARER_{key.upper()}"
    return os.environ.get(env_key)


def _apply_env_overrides(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Apply environment variable overrides to config data.

    Only keys present in the YAML data can be overridden; the type of the
    YAML value decides how the string is converted.
    Example: WAYFARER_THREAT__SCAN_RADIUS=48 sets threat.scan_radius to 48.0
    """
    result = data.copy()

    for key, value in result.items():
        env_key = f"{prefix}__{key}" if prefix else key

        if isinstance(value, dict):
            result[key] = _apply_env_overrides(value, env_key)
        else:
            env_value = _get_env_value(env_key)
            if env_value is not None:
                if isinstance(value, bool):
                    result[key] = env_value.lower() in ("true", "1", "yes")
                elif isinstance(value, int):
                    result[key] = int(env_value)
                elif isinstance(value, float):
                    result[key] = float(env_value)
                elif isinstance(value, list):
                    result[key] = [item.strip() for item in env_value.split(",") if item.strip()]
                else:
                    result[key] = env_value

    return result


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None, uses the packaged default.yaml.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config values are invalid.
    """
    config_path = DEFAULT_CONFIG_PATH if config_path is None else Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    data = _apply_env_overrides(data)
    logger.debug(f"Loaded config from {config_path}")

    return Config.model_validate(data)


def get_default_config() -> Config:
    """Get default configuration without loading from file."""
    return Config()
