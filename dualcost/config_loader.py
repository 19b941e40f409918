"""Configuration loader with environment variable expansion."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

ENV_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(:-([^}]*))?\}")


class ConfigLoader:
    """Load and parse configuration with environment variable expansion."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to config.yaml (defaults to config/config.yaml at the project root)
        """
        if config_path is None:
            base_dir = Path(__file__).parent.parent
            config_path = base_dir / "config" / "config.yaml"

        self.config_path = Path(config_path)
        self._config = None

    def load(self) -> Dict[str, Any]:
        """Load configuration from YAML file with environment variable expansion.

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config file is invalid
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        self._config = self._expand_env_vars(raw_config)
        return self._config

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand environment variables in configuration.

        Supports:
        - ${VAR_NAME}: Required variable (raises if not set)
        - ${VAR_NAME:-default}: Variable with default value
        """
        if isinstance(obj, dict):
            return {k: self._expand_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            return self._expand_string(obj)
        else:
            return obj

    def _expand_string(self, value: str) -> str:
        """Expand environment variables in a string.

        Raises:
            ValueError: If required environment variable is not set
        """

        def replacer(match):
            var_name = match.group(1)
            has_default = match.group(2) is not None
            default_value = match.group(3) if has_default else None

            env_value = os.environ.get(var_name)

            if env_value is not None:
                return env_value
            elif has_default:
                return default_value
            else:
                raise ValueError(
                    f"Required environment variable '{var_name}' is not set. Found in configuration value: {value}"
                )

        return ENV_PATTERN.sub(replacer, value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Example:
            >>> loader = ConfigLoader()
            >>> core_price = loader.get('pricing.core_price')
            >>> level = loader.get('logging.level', 'INFO')
        """
        if self._config is None:
            self.load()

        value = self._config
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    @property
    def config(self) -> Dict[str, Any]:
        if self._config is None:
            self.load()
        return self._config


def get_pricing(config: Dict[str, Any]) -> Dict[str, float]:
    """Extract and validate unit prices from a loaded configuration.

    Args:
        config: Configuration dictionary

    Returns:
        Dict with float core_price and mem_price

    Raises:
        ValueError: If a price is missing, not numeric or not positive
    """
    pricing = config.get("pricing") or {}
    prices = {}
    for name in ("core_price", "mem_price"):
        if name not in pricing:
            raise ValueError(f"Missing configuration value 'pricing.{name}'")
        try:
            price = float(pricing[name])
        except (TypeError, ValueError):
            raise ValueError(f"Configuration value 'pricing.{name}' must be a number, got {pricing[name]!r}")
        if price <= 0:
            raise ValueError(f"Configuration value 'pricing.{name}' must be positive, got {price}")
        prices[name] = price
    return prices


# Singleton instance for convenience
_default_loader = None


def get_config(config_path: Optional[str] = None, reload: bool = False) -> Dict[str, Any]:
    """Get configuration (singleton pattern).

    Args:
        config_path: Path to config.yaml (optional)
        reload: Force reload from file

    Returns:
        Configuration dictionary
    """
    global _default_loader

    if _default_loader is None or reload:
        _default_loader = ConfigLoader(config_path)
        return _default_loader.load()

    return _default_loader.config


def get_value(key_path: str, default: Any = None) -> Any:
    """Get configuration value using dot notation (convenience function)."""
    global _default_loader

    if _default_loader is None:
        get_config()

    return _default_loader.get(key_path, default)
