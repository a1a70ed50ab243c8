# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for project closure resolution."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".project_closure.yml"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for the project closure resolver.

    Loads configuration from .project_closure.yml with validation and defaults.
    In the default (lenient) mode any problem falls back to defaults with a
    log message; with strict=True the same problems raise ConfigurationError.
    """

    DEFAULTS: Dict[str, Any] = {
        "max_projects": 10000,  # Visited-node bound, 0 disables
        "timeout_seconds": 60,  # Wall-clock bound per resolution, 0 disables
        "reference_item_types": ["ProjectReference"],
        "max_project_file_kb": 10240,
        "case_insensitive_paths": None,  # None follows the host filesystem
        "expand_environment": True,
        "log_level": "INFO",
    }

    def __init__(self, config_path: Optional[Path] = None, strict: bool = False):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
            strict: Raise ConfigurationError instead of falling back to defaults.
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILENAME

        self.config_path = config_path
        self.strict = strict
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any], strict: bool = False) -> "Config":
        """Build a configuration from an in-memory mapping (no file access)."""
        config = cls.__new__(cls)
        config.config_path = None
        config.strict = strict
        config._config = cls._copy_defaults()
        config._validate_and_merge(values)
        return config

    @classmethod
    def _copy_defaults(cls) -> Dict[str, Any]:
        copied = cls.DEFAULTS.copy()
        copied["reference_item_types"] = list(cls.DEFAULTS["reference_item_types"])
        return copied

    def _fail(self, message: str) -> None:
        if self.strict:
            raise ConfigurationError(message)
        logger.warning(message)

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        self._config = self._copy_defaults()

        if not self.config_path.exists():
            if self.strict:
                raise ConfigurationError(f"Configuration file not found: {self.config_path}")
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self._fail(f"Error parsing configuration file {self.config_path}: {e}, using defaults")
            return
        except OSError as e:
            self._fail(f"Error reading configuration file {self.config_path}: {e}, using defaults")
            return

        if loaded_config is None:
            logger.warning("Configuration file is empty, using defaults")
            return

        if not isinstance(loaded_config, dict):
            self._fail(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(loaded_config)}, using defaults"
            )
            return

        self._validate_and_merge(loaded_config)

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                self._fail(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                self._fail(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = list(value) if isinstance(value, list) else value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        if key == "case_insensitive_paths":
            return value is None or isinstance(value, bool)

        # bool is an int subclass; keep numeric limits strictly numeric
        if isinstance(value, bool) and not isinstance(self.DEFAULTS[key], bool):
            return False

        if key == "timeout_seconds":
            return isinstance(value, (int, float)) and value >= 0
        if key == "max_projects":
            return isinstance(value, int) and value >= 0
        if key == "max_project_file_kb":
            return isinstance(value, int) and value > 0
        if key == "reference_item_types":
            return (
                isinstance(value, list)
                and len(value) > 0
                and all(isinstance(item, str) and item.strip() for item in value)
            )
        if key == "log_level":
            return isinstance(value, str) and value.upper() in VALID_LOG_LEVELS

        return isinstance(value, type(self.DEFAULTS[key]))

    def to_dict(self) -> Dict[str, Any]:
        """Effective configuration values."""
        return dict(self._config)

    # Property accessors for all configuration values
    @property
    def max_projects(self) -> int:
        """Maximum projects visited per resolution (0 = unbounded)."""
        value = self._config["max_projects"]
        assert isinstance(value, int)
        return value

    @property
    def timeout_seconds(self) -> float:
        """Wall-clock limit per resolution in seconds (0 = unbounded)."""
        value = self._config["timeout_seconds"]
        assert isinstance(value, (int, float))
        return value

    @property
    def reference_item_types(self) -> List[str]:
        """Item element names treated as project references."""
        value = self._config["reference_item_types"]
        assert isinstance(value, list)
        return value

    @property
    def max_project_file_kb(self) -> int:
        """Project files larger than this are refused."""
        value = self._config["max_project_file_kb"]
        assert isinstance(value, int)
        return value

    @property
    def case_insensitive_paths(self) -> Optional[bool]:
        """Identity case folding; None follows the host filesystem."""
        value = self._config["case_insensitive_paths"]
        assert value is None or isinstance(value, bool)
        return value

    @property
    def expand_environment(self) -> bool:
        """Whether environment variables expand as $(Name) properties."""
        value = self._config["expand_environment"]
        assert isinstance(value, bool)
        return value

    @property
    def log_level(self) -> str:
        """Logging level name."""
        value = self._config["log_level"]
        assert isinstance(value, str)
        return value.upper()
