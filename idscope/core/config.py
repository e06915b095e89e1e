"""Configuration management system for idscope.

This module provides centralized configuration loading from multiple sources:
- YAML/TOML configuration files
- Environment variables (.env)
- Default values

Includes validation to ensure configuration values are correct.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

import yaml
from dotenv import load_dotenv


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    missing_api_keys: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def __str__(self) -> str:
        """Format validation result as string."""
        lines = []
        if self.errors:
            lines.append("Errors:")
            lines.extend(f"  - {e}" for e in self.errors)
        if self.warnings:
            lines.append("Warnings:")
            lines.extend(f"  - {w}" for w in self.warnings)
        if self.missing_api_keys:
            lines.append("Missing API keys (optional):")
            lines.extend(f"  - {k}" for k in self.missing_api_keys)
        if not lines:
            return "Configuration is valid."
        return "\n".join(lines)


DEFAULTS: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "directory": "logs",
        "json_format": False,
    },
    "search": {
        "max_variations": 12,
        "probe_variations": 3,
        "probe_timeout_seconds": 6.0,
        "fetch_timeout_seconds": 8.0,
        "max_concurrent_requests": 10,
        "deadline_seconds": 45.0,
        "min_confidence": 30,
        "max_results": 35,
        "user_agent": "",
    },
    "discovery": {
        "enabled": True,
        "max_results": 3,
        "timeout_seconds": 10.0,
    },
    "api_keys": {
        "serpapi_api_key": "",
    },
    # Empty means the built-in registry
    "platforms": [],
}


class Config:
    """Configuration manager for idscope."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML or TOML config file (optional)
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self._config: Dict[str, Any] = {}

        # Load .env file if it exists
        env_path = Path(".env")
        if env_path.exists():
            load_dotenv(env_path)
            self.logger.info("Loaded environment variables from .env")

        if config_file:
            self._load_config_file(config_file)
        else:
            self._auto_load_config()

        self._load_defaults()

    def _load_config_file(self, config_file: str) -> None:
        """Load configuration from YAML or TOML file."""
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}")
            return

        try:
            with open(config_path, "rb") as f:
                if config_file.endswith((".yaml", ".yml")):
                    self._config = yaml.safe_load(f) or {}
                    self.logger.info(f"Loaded YAML config from {config_file}")
                elif config_file.endswith(".toml"):
                    self._config = tomllib.load(f)
                    self.logger.info(f"Loaded TOML config from {config_file}")
                else:
                    self.logger.error(f"Unsupported config format: {config_file}")
        except (OSError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
            self.logger.error(f"Failed to load config file {config_file}: {e}")

    def _auto_load_config(self) -> None:
        """Automatically find and load config file."""
        config_dir = Path("config")

        candidates = [
            config_dir / "idscope.yaml",
            config_dir / "idscope.yml",
            config_dir / "idscope.toml",
            Path("idscope.yaml"),
            Path("idscope.yml"),
            Path("idscope.toml"),
        ]

        for candidate in candidates:
            if candidate.exists():
                self._load_config_file(str(candidate))
                return

        self.logger.debug("No config file found, using defaults and environment variables")

    def _load_defaults(self) -> None:
        """Merge default values under the loaded config (loaded config wins)."""
        for key, value in DEFAULTS.items():
            if key not in self._config:
                self._config[key] = value.copy() if isinstance(value, (dict, list)) else value
            elif isinstance(value, dict):
                # Deep merge for nested dicts
                self._config[key] = {**value, **(self._config.get(key) or {})}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Supports dot notation for nested keys: "search.deadline_seconds".
        Environment variables take precedence (``SEARCH_DEADLINE_SECONDS``).

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        env_key = key.upper().replace(".", "_")
        env_value = os.getenv(env_key)
        if env_value is not None:
            return env_value

        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_int(self, key: str, default: int) -> int:
        """Get a configuration value coerced to ``int``."""
        try:
            return int(self.get(key, default))
        except (TypeError, ValueError):
            self.logger.warning(f"Invalid integer for {key}, using {default}")
            return default

    def get_float(self, key: str, default: float) -> float:
        """Get a configuration value coerced to ``float``."""
        try:
            return float(self.get(key, default))
        except (TypeError, ValueError):
            self.logger.warning(f"Invalid number for {key}, using {default}")
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        """Get a configuration value coerced to ``bool``."""
        value = self.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value at runtime.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        self.logger.debug(f"Set config {key} = {value}")

    def get_section(self, section: str) -> Any:
        """
        Get entire configuration section.

        Args:
            section: Section name (e.g., "search", "api_keys")

        Returns:
            The section as loaded, or an empty dict
        """
        return self._config.get(section, {})

    def get_api_key(self, service: str) -> str:
        """
        Get API key for a service.

        ``SERPAPI_API_KEY`` in the environment wins over
        ``api_keys.serpapi_api_key`` in the config file.

        Args:
            service: Service name (e.g., "serpapi")

        Returns:
            API key or empty string if not configured
        """
        env_value = os.getenv(f"{service.upper()}_API_KEY", "")
        if env_value:
            return env_value

        return self._config.get("api_keys", {}).get(f"{service}_api_key", "") or ""

    def to_dict(self) -> Dict[str, Any]:
        """
        Get all configuration as dictionary.

        Returns:
            Complete configuration dictionary
        """
        return self._config.copy()

    def reload(self, config_file: Optional[str] = None) -> None:
        """
        Reload configuration from file.

        Args:
            config_file: Path to config file (optional, auto-discovered if not provided)
        """
        self._config = {}
        if config_file:
            self._load_config_file(config_file)
        else:
            self._auto_load_config()
        self._load_defaults()
        self.logger.info("Configuration reloaded")

    def validate(self) -> ValidationResult:
        """
        Validate the configuration.

        Checks:
        - Logging level is known
        - Search timeouts, limits and thresholds are in range
        - Platform entries are well formed
        - API keys are present (warnings for missing)

        Returns:
            ValidationResult with errors and warnings
        """
        result = ValidationResult(is_valid=True)

        log_level = str(self.get("logging.level", "INFO"))
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            result.add_error(
                f"Invalid logging level '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )

        max_variations = self.get_int("search.max_variations", 12)
        if not 8 <= max_variations <= 12:
            result.add_warning("search.max_variations is clamped to the range 8-12")

        probe_variations = self.get_int("search.probe_variations", 3)
        if probe_variations < 1:
            result.add_error("search.probe_variations must be a positive integer")
        elif probe_variations > 3:
            result.add_warning(
                f"search.probe_variations={probe_variations} multiplies requests per platform"
            )

        for key, low, high in (
            ("search.probe_timeout_seconds", 5.0, 8.0),
            ("search.fetch_timeout_seconds", 8.0, 10.0),
        ):
            value = self.get_float(key, low)
            if value <= 0:
                result.add_error(f"{key} must be a positive number")
            elif not low <= value <= high:
                result.add_warning(f"{key}={value} is outside the recommended {low}-{high}s")

        deadline = self.get_float("search.deadline_seconds", 45.0)
        if deadline <= 0:
            result.add_error("search.deadline_seconds must be a positive number")

        max_concurrent = self.get_int("search.max_concurrent_requests", 10)
        if max_concurrent < 1:
            result.add_error("search.max_concurrent_requests must be a positive integer")
        elif max_concurrent > 50:
            result.add_warning(
                f"search.max_concurrent_requests={max_concurrent} is high, "
                "may cause rate limiting"
            )

        min_confidence = self.get_int("search.min_confidence", 30)
        if not 0 <= min_confidence <= 100:
            result.add_error("search.min_confidence must be between 0 and 100")

        max_results = self.get_int("search.max_results", 35)
        if max_results < 1:
            result.add_error("search.max_results must be a positive integer")

        discovery_results = self.get_int("discovery.max_results", 3)
        if not 2 <= discovery_results <= 5:
            result.add_warning("discovery.max_results is clamped to the range 2-5")

        platforms = self.get_section("platforms")
        if platforms and not isinstance(platforms, list):
            result.add_error("platforms must be a list of platform entries")
        elif platforms:
            for index, entry in enumerate(platforms):
                if not isinstance(entry, dict) or "name" not in entry:
                    result.add_error(f"platforms[{index}] is missing 'name'")
                    continue
                template = entry.get("url_template") or entry.get("url") or ""
                if template.count("{username}") != 1:
                    result.add_error(
                        f"platforms[{index}] ({entry['name']}) needs one {{username}} placeholder"
                    )

        if self.get_bool("discovery.enabled", True) and not self.get_api_key("serpapi"):
            result.missing_api_keys.append("serpapi: search-engine discovery (vector disabled)")

        if not result.is_valid:
            for error in result.errors:
                self.logger.error(f"Config validation error: {error}")
        for warning in result.warnings:
            self.logger.warning(f"Config validation warning: {warning}")

        return result

    def validate_and_raise(self) -> ValidationResult:
        """
        Validate configuration and raise exception if invalid.

        Returns:
            ValidationResult of a valid configuration (warnings may be present)

        Raises:
            ValueError: If configuration is invalid
        """
        result = self.validate()
        if not result.is_valid:
            raise ValueError(f"Invalid configuration:\n{result}")
        return result


# Global configuration instance
_global_config: Optional[Config] = None


def get_config(config_file: Optional[str] = None) -> Config:
    """
    Get global configuration instance.

    Args:
        config_file: Path to config file (only used on first call)

    Returns:
        Config instance
    """
    global _global_config

    if _global_config is None:
        _global_config = Config(config_file)

    return _global_config


def reload_config(config_file: Optional[str] = None) -> None:
    """
    Reload global configuration.

    Args:
        config_file: Path to config file (optional)
    """
    global _global_config

    if _global_config is not None:
        _global_config.reload(config_file)
    else:
        _global_config = Config(config_file)
