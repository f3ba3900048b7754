"""Configuration management for the pair selector."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger

from .data.models import Resolution


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Configuration manager that loads from YAML and environment variables."""

    ENV_OVERRIDES = {
        "PAIR_SELECTOR_LOOKBACK": ("selection", "lookback", int),
        "PAIR_SELECTOR_RESOLUTION": ("selection", "resolution", str),
        "PAIR_SELECTOR_MINIMUM_CORRELATION": ("selection", "minimum_correlation", float),
    }

    def __init__(self, config_path: str = "config.yaml"):
        """Initialize configuration from YAML file and environment."""
        load_dotenv()

        self.config_path = Path(config_path)
        self._config: dict[str, Any] = {}
        self._load_config()
        self._apply_env_overrides()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if self.config_path.exists():
            with open(self.config_path) as f:
                loaded = yaml.safe_load(f) or {}
            self._config = _merge(self._default_config(), loaded)
            logger.info(f"Loaded configuration from {self.config_path}")
        else:
            logger.warning(f"Config file not found at {self.config_path}, using defaults")
            self._config = self._default_config()

    def _apply_env_overrides(self) -> None:
        """Override selection settings from environment variables."""
        for env_var, (section, key, cast) in self.ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if raw is None or raw == "":
                continue
            try:
                self._config.setdefault(section, {})[key] = cast(raw)
            except ValueError:
                logger.warning(f"Ignoring invalid {env_var}={raw!r}")
                continue
            logger.debug(f"{section}.{key} overridden by {env_var}")

    def _default_config(self) -> dict[str, Any]:
        """Return default configuration."""
        return {
            "selection": {
                "lookback": 30,
                "resolution": "daily",
                "minimum_correlation": 0.5,
                "allow_perfect_correlation": False,
            },
            "strategy": {
                "threshold": 1.0,
            },
            "logging": {
                "level": "INFO",
                "file": "logs/pair_selector.log",
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation (e.g., 'selection.lookback')."""
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        *parents, last = key.split(".")
        node = self._config
        for k in parents:
            node = node.setdefault(k, {})
        node[last] = value

    @property
    def lookback(self) -> int:
        """Number of historical bars used per selection cycle."""
        return int(self.get("selection.lookback", 30))

    @property
    def resolution(self) -> Resolution:
        """Sampling resolution of the history request."""
        return Resolution.parse(self.get("selection.resolution", "daily"))

    @property
    def minimum_correlation(self) -> float:
        """Lowest correlation accepted for a tradable pair."""
        return float(self.get("selection.minimum_correlation", 0.5))

    @property
    def allow_perfect_correlation(self) -> bool:
        """Whether off-diagonal |r| == 1 entries may be selected."""
        return bool(self.get("selection.allow_perfect_correlation", False))

    @property
    def threshold(self) -> float:
        """Ratio deviation percent used by the surrounding strategy."""
        return float(self.get("strategy.threshold", 1.0))

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access."""
        return self.get(key)
