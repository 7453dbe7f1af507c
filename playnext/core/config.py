"""
Configuration management for playnext.

This module provides centralized configuration loading and access,
supporting YAML files and environment variable overrides.
"""

import copy
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import yaml

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigurationManager:
    """
    Centralized configuration management for playnext.

    Loads configuration from a YAML file, supports environment variable
    overrides, and provides typed dot-path access.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the config YAML file (defaults to config.yml in project root)
        """
        self.config_path = config_path or self._find_config_file()
        self._base_config: Dict[str, Any] = {}  # Original configuration from file
        self._config: Dict[str, Any] = {}  # Configuration with overrides applied
        self._load_config()

    def _find_config_file(self) -> str:
        """Find the config.yml file by walking up from this package."""
        current_dir = Path(__file__).parent
        for _ in range(4):
            config_file = current_dir / "config.yml"
            if config_file.exists():
                return str(config_file)
            current_dir = current_dir.parent

        # Fallback: assume config.yml is in the working directory
        return "config.yml"

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                self._base_config = yaml.safe_load(f) or {}

            self._config = copy.deepcopy(self._base_config)

            if self._base_config.get("environment_overrides", {}).get("enabled"):
                self._apply_env_overrides()

            logger.info(f"✅ Loaded configuration from {self.config_path}")

        except FileNotFoundError:
            logger.warning(
                f"⚠️  Config file not found: {self.config_path}. Using built-in defaults."
            )
            self._base_config = {}
            self._config = {}
        except yaml.YAMLError as e:
            logger.error(f"❌ Error parsing config YAML: {e}. Using built-in defaults.")
            self._base_config = {}
            self._config = {}

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        env_config = self._base_config.get("environment_overrides", {})
        prefix = env_config.get("prefix", "PN_")
        mappings = env_config.get("mappings", {})

        overrides_applied = 0
        for config_path, env_suffix in mappings.items():
            env_value = os.getenv(f"{prefix}{env_suffix}")

            if env_value is not None:
                converted_value = self._convert_env_value(env_value)
                self._set_nested_value(config_path, converted_value)
                overrides_applied += 1
                logger.info(
                    f"🔧 Environment override: {config_path} = {converted_value}"
                )

        if overrides_applied:
            logger.info(f"✅ Applied {overrides_applied} environment overrides")

    def _convert_env_value(self, value: str) -> Union[str, int, float, bool, None]:
        """Convert environment variable string to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False
        elif value.lower() in ("null", "none", ""):
            return None

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _set_nested_value(self, path: str, value: Any) -> None:
        """Set a nested configuration value using dot notation."""
        keys = path.split(".")
        current = self._config

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def get(
        self, path: str, default: Any = None, type_hint: Optional[Type[T]] = None
    ) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            path: Dot-separated path to the config value (e.g., 'tracklist.max_history')
            default: Default value if path doesn't exist
            type_hint: Optional type hint for return value

        Returns:
            Configuration value with optional type casting
        """
        current: Any = self._config

        try:
            for key in path.split("."):
                current = current[key]
        except (KeyError, TypeError):
            return default

        if current is None:
            return default

        if type_hint is not None:
            try:
                if type_hint == bool:
                    return bool(current)
                elif type_hint == int:
                    return int(current)
                elif type_hint == float:
                    return float(current)
                elif type_hint == str:
                    return str(current)
            except (ValueError, TypeError):
                logger.warning(
                    f"⚠️  Config value {path}={current!r} is not a valid {type_hint.__name__}"
                )
                return default

        return current

    def get_section(self, section: str) -> Any:
        """Get an entire configuration section."""
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for common configuration paths

    @property
    def scoring_defaults(self) -> Dict[str, float]:
        """Get similarity scoring constants."""
        return {
            "current_track_bonus": self.get(
                "scoring.current_track_bonus", 200.0, float
            ),
            "recency_malus_factor": self.get(
                "scoring.recency_malus_factor", 0.3, float
            ),
            "jitter_scale": self.get("scoring.jitter_scale", 0.0001, float),
            "unscored_sentinel": self.get("scoring.unscored_sentinel", -100.0, float),
        }

    @property
    def search_defaults(self) -> Dict[str, float]:
        """Get text search settings."""
        return {
            "fuzzy_threshold": self.get("search.fuzzy_threshold", 0.4, float),
        }

    @property
    def selection_defaults(self) -> Dict[str, Any]:
        """Get selection pipeline settings."""
        return {
            "random_seed": self.get("selection.random_seed", None, int),
            "default_temperature": self.get(
                "selection.default_temperature", 0.0, float
            ),
        }

    @property
    def tracklist_defaults(self) -> Dict[str, int]:
        """Get tracklist settings."""
        return {
            "max_history": self.get("tracklist.max_history", 30, int),
        }


# Global configuration instance with thread-safe initialization
_config_instance: Optional[ConfigurationManager] = None
_config_lock = threading.Lock()


def get_config(config_path: Optional[str] = None) -> ConfigurationManager:
    """
    Get the global configuration instance using thread-safe double-checked locking.

    Args:
        config_path: Path to config file (only used on first call)

    Returns:
        ConfigurationManager instance
    """
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = ConfigurationManager(config_path)

    return _config_instance


def reload_config() -> None:
    """Reload the global configuration in a thread-safe manner."""
    global _config_instance

    with _config_lock:
        if _config_instance:
            _config_instance.reload()
        else:
            _config_instance = ConfigurationManager()


def reset_config() -> None:
    """
    Reset the global configuration instance.

    This is primarily intended for unit tests to ensure clean state.
    """
    global _config_instance

    with _config_lock:
        _config_instance = None


def get_scoring_defaults() -> Dict[str, float]:
    """Get similarity scoring constants."""
    return get_config().scoring_defaults


def get_search_defaults() -> Dict[str, float]:
    """Get text search settings."""
    return get_config().search_defaults


def get_selection_defaults() -> Dict[str, Any]:
    """Get selection pipeline settings."""
    return get_config().selection_defaults


def get_tracklist_defaults() -> Dict[str, int]:
    """Get tracklist settings."""
    return get_config().tracklist_defaults
