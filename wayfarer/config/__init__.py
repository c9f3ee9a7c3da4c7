"""Configuration management for the decision core."""

from wayfarer.config.loader import Config, get_default_config, load_config
from wayfarer.config.secrets import load_environment_secrets

__all__ = [
    "Config",
    "get_default_config",
    "load_config",
    "load_environment_secrets",
]
