"""
Configuration management for happy-race.
Loads and validates settings from YAML files and environment variables.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeneralConfig(BaseModel):
    """General configuration."""

    project_name: str = "happy-race"
    version: str = "0.1.0"
    log_level: str = "INFO"


class TimingConfig(BaseModel):
    """Race timing quanta, in milliseconds.

    All TCP step delays are multiples of step_size_ms so that a bounded
    number of target addresses covers every configurable delay.
    """

    model_config = ConfigDict(extra="forbid")

    step_size_ms: int = 40
    # when the client normally launches the spare family
    spare_wait_exact_ms: int = 250

    @field_validator("step_size_ms", "spare_wait_exact_ms")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timing values must be positive")
        return value


class NamingConfig(BaseModel):
    """Scenario naming configuration."""

    domain_suffix: str = "happy.test"


class HarnessConfig(BaseModel):
    """Scenario execution configuration."""

    # accepted slack above the minimum response time
    tolerance_ms: int = 2000
    # delay between consecutive test runs (zero-TTL DNS answers get collapsed)
    run_stagger_ms: int = 5000
    scenario_timeout_seconds: float = 30.0
    listen_host4: str = "127.0.0.1"
    listen_host6: str = "::1"
    base_port: int = 13128
    port_count: int = 64


class Settings(BaseModel):
    """Main settings container."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    harness: HarnessConfig = Field(default_factory=HarnessConfig)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary.
        override: Override dictionary.

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _load_yaml_config(config_dir: Path) -> dict[str, Any]:
    """Load settings.yaml with local.yaml overrides (settings section).

    Example local.yaml:
        settings:
          timing:
            step_size_ms: 50

    Args:
        config_dir: Configuration directory path.

    Returns:
        Merged configuration dictionary.
    """
    config = _load_yaml_file(config_dir / "settings.yaml")

    local_overrides = _load_yaml_file(config_dir / "local.yaml")
    if "settings" in local_overrides:
        config = _deep_merge(config, local_overrides["settings"])

    return config


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides.

    Environment variables should be prefixed with HAPPY_RACE_ and use
    double underscores for nested keys.

    Example:
        HAPPY_RACE_TIMING__STEP_SIZE_MS=50

    Args:
        config: Configuration dictionary.

    Returns:
        Configuration with environment overrides.
    """
    prefix = "HAPPY_RACE_"

    for key, value in os.environ.items():
        if not key.startswith(prefix) or key == "HAPPY_RACE_CONFIG_DIR":
            continue

        key_path = key[len(prefix) :].lower().split("__")

        current = config
        for part in key_path[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]

        final_key = key_path[-1]
        try:
            if value.lower() in ("true", "false"):
                current[final_key] = value.lower() == "true"
            elif "." in value:
                current[final_key] = float(value)
            else:
                current[final_key] = int(value)
        except ValueError:
            current[final_key] = value

    return config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get application settings.

    Settings are loaded from:
    1. Default values
    2. YAML configuration files
    3. Environment variables (highest priority)

    Returns:
        Settings instance.
    """
    config_dir = Path(os.environ.get("HAPPY_RACE_CONFIG_DIR", "config"))

    config = _load_yaml_config(config_dir)
    config = _apply_env_overrides(config)

    return Settings(**config)
