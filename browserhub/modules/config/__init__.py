"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: get_config(), ConfigModule.get(), ConfigModule.get_all()
Hidden: Config sources, validation logic, environment parsing

Can be replaced with different config systems (files, Consul, etcd).
"""

import os
from typing import Any, Dict, List, Mapping, Optional


# Configuration Contract: Required and Optional Keys
# This defines the black box interface - what the config module guarantees to provide

REQUIRED_CONFIG_KEYS = {
    "host": "API server bind address",
    "port": "API server port",
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
    "launch_timeout": "Seconds allowed for one browser launch",
    "terminate_timeout": "Grace period in seconds before a browser is killed",
    "cors_origins": "Allowed CORS origins",
}

OPTIONAL_CONFIG_KEYS = {
    "debug": {
        "description": "Enable debug mode (auto-reload)",
        "default": False,
    },
    "chrome_path": {
        "description": "Browser executable; auto-detected when unset",
        "default": None,
    },
}


class ConfigModule:
    """Configuration management module."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """Initialize from environment variables (os.environ unless given)."""
        self._env = os.environ if environ is None else environ
        self._config = self._load_from_env()
        self._validate()

    def _validate(self) -> None:
        """
        Validate that all required configuration keys are present and sane.

        Raises:
            ValueError: If required keys are missing or out of range
        """
        missing_keys = [
            key for key in REQUIRED_CONFIG_KEYS
            if key not in self._config or self._config[key] is None
        ]
        if missing_keys:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing_keys)}. "
                f"Check environment variables and deployment configuration."
            )

        if not 0 < self._config["port"] < 65536:
            raise ValueError(f"Port out of range: {self._config['port']}")
        for key in ("launch_timeout", "terminate_timeout"):
            if self._config[key] <= 0:
                raise ValueError(f"{key} must be positive, got {self._config[key]}")

    def _getenv(self, *names: str, default: Optional[str] = None) -> Optional[str]:
        for name in names:
            value = self._env.get(name)
            if value:
                return value
        return default

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment."""
        return {
            # API settings
            "host": self._getenv("HOST", "API_HOST", default="127.0.0.1"),
            "port": int(self._getenv("PORT", "API_PORT", default="3001")),
            "log_level": self._getenv("LOG_LEVEL", default="INFO").upper(),
            "debug": self._getenv("DEBUG", default="false").lower() == "true",
            "cors_origins": _split_list(self._getenv("CORS_ORIGINS", default="*")),
            # Browser settings
            "launch_timeout": float(self._getenv("LAUNCH_TIMEOUT", default="30")),
            "terminate_timeout": float(self._getenv("TERMINATE_TIMEOUT", default="5")),
            "chrome_path": self._getenv("CHROME_PATH"),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._config[key] = value

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return self._config.copy()

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Get the configuration schema (contract) for this module.

        Returns:
            Dictionary with 'required' and 'optional' key specifications

        Example:
            >>> schema = ConfigModule.get_config_schema()
            >>> print(schema['required']['port'])
            'API server port'
        """
        return {
            "required": REQUIRED_CONFIG_KEYS.copy(),
            "optional": OPTIONAL_CONFIG_KEYS.copy(),
        }


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance
