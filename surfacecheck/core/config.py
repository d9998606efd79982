"""Configuration management for Surface Check."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError, ErrorCodes


class Config:
    """Configuration manager that loads settings from YAML and environment variables."""

    def __init__(self, config_path: Optional[str] = None, env_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config.yaml file
            env_path: Path to .env.local file
        """
        self.base_dir = Path(__file__).parent.parent.parent

        if env_path:
            load_dotenv(env_path)
        else:
            env_file = self.base_dir / ".env.local"
            if env_file.exists():
                load_dotenv(env_file)

        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path(os.getenv("SURFACECHECK_CONFIG", self.base_dir / "config.yaml"))

        self._config = self._load_config()
        self._api_keys = self._load_api_keys()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{self.config_path}: {e}", error=ErrorCodes.CONFIG_INVALID)

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{self.config_path}: top level must be a mapping", error=ErrorCodes.CONFIG_INVALID
            )
        return data

    def _load_api_keys(self) -> Dict[str, str]:
        """Load API keys and secrets from environment variables."""
        return {
            "abuseipdb": os.getenv("ABUSEIPDB_KEY", ""),
            "abusech": os.getenv("ABUSECH_KEY", ""),
            "turnstile": os.getenv("TURNSTILE_SECRET_KEY", ""),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'timeouts.dns')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

            if value is None:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Override a configuration value using dot notation (CLI and tests)."""
        keys = key.split(".")
        node = self._config
        for k in keys[:-1]:
            node = node.setdefault(k, {})
        node[keys[-1]] = value

    def get_api_key(self, service: str) -> str:
        """Get API key for a service."""
        return self._api_keys.get(service, "")

    def has_api_key(self, service: str) -> bool:
        """Check if API key is configured for a service."""
        key = self._api_keys.get(service, "")
        return bool(key and key.strip())

    @property
    def environment(self) -> str:
        """Deployment environment ('production' enables strict secret checks)."""
        return os.getenv("SURFACECHECK_ENV", self._config.get("environment", "development")).lower()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def modules(self) -> Dict[str, Any]:
        """Get all check module configurations."""
        return self._config.get("modules") or {}

    @property
    def rate_limits(self) -> Dict[str, Any]:
        """Caller-facing rate limits: endpoint -> requests per window."""
        defaults = {"window_seconds": 60, "eviction_threshold": 1000, "quickcheck": 10, "catalog": 30}
        return {**defaults, **self._config.get("rate_limits", {})}

    @property
    def upstream_budgets(self) -> Dict[str, int]:
        """Per-source upstream call budgets (calls per budget window)."""
        return self._config.get("upstream_budgets", {})

    @property
    def cache_settings(self) -> Dict[str, int]:
        defaults = {"result_ttl_seconds": 300, "catalog_ttl_seconds": 21600, "max_entries": 2048}
        return {**defaults, **self._config.get("cache", {})}

    @property
    def timeouts(self) -> Dict[str, float]:
        defaults = {"dns": 2.0, "http": 6.0, "check": 8.0, "request": 15.0}
        return {**defaults, **self._config.get("timeouts", {})}

    @property
    def blacklist(self) -> Dict[str, Any]:
        return self._config.get("blacklist", {})

    @property
    def locked_checks(self) -> List[str]:
        return list(self._config.get("locked_checks", []))

    @property
    def user_agent(self) -> str:
        """Get custom user agent string."""
        return self._config.get("user_agent", "SurfaceCheck/1.0")

    @property
    def proxy_settings(self) -> Optional[Dict[str, str]]:
        """Get proxy settings if enabled."""
        proxy_config = self._config.get("proxy", {})
        if proxy_config.get("enabled"):
            return {
                "http": proxy_config.get("http"),
                "https": proxy_config.get("https"),
            }
        return None

    @property
    def log_file(self) -> Optional[str]:
        """Resolved log file path, or None when file logging is off."""
        log_file = self._config.get("logging", {}).get("file")
        if not log_file:
            return None
        path = Path(log_file)
        if not path.is_absolute():
            path = self.base_dir / path
        return str(path)

    def is_module_enabled(self, module_name: str) -> bool:
        """Check if a module is enabled (checks default to enabled)."""
        return self.get_module_config(module_name).get("enabled", True)

    def get_module_config(self, module_name: str) -> Dict[str, Any]:
        """Get configuration for a specific module."""
        return self.modules.get(module_name, {}) or {}
