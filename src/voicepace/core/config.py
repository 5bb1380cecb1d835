#!/usr/bin/env python3
"""Configuration loader that reads from config files.

Settings live under the ``[voicepace]`` table of a TOML file
(``$VOICEPACE_CONFIG`` or ``~/.voicepace/config.toml``) and are deep-merged
over DEFAULT_CONFIG. Credentials may also come from the environment.
"""

import copy
import os
from pathlib import Path
from typing import Any

import tomllib

from ..exceptions import ConfigurationError

DEFAULT_CONFIG: dict[str, Any] = {
    "credentials": {
        "app_id": "",
        "api_key": "",
        "api_secret": "",
        "language": "zh_cn",
        "sample_rate": 16000,
    },
    "service": {"url": "wss://iat-api.xfyun.cn/v2/iat"},
    "session": {
        "vendor": "xfyun",
        "vad_eos": 10000,
        "dynamic_correction": False,
        "frame_size": 1280,
        "max_duration_s": 60.0,
        "file_frame_interval_s": 0.04,
    },
    "analytics": {
        "window_seconds": 10.0,
        "bands": {"slow": 0, "moderate": 120, "fast": 180, "very fast": 250, "idle_label": "not started"},
    },
}

# Environment variable -> credentials key
CREDENTIAL_ENV_VARS = {
    "VOICEPACE_APP_ID": "app_id",
    "VOICEPACE_API_KEY": "api_key",
    "VOICEPACE_API_SECRET": "api_secret",
    "VOICEPACE_LANGUAGE": "language",
}


class ConfigLoader:
    """Load configuration from config files."""

    def __init__(self, config_path: str | Path | None = None) -> None:
        if config_path is None:
            config_path = self._default_config_path()

        self.config_file = str(config_path)
        config_path = Path(config_path)
        if config_path.exists():
            try:
                with open(config_path, "rb") as f:
                    full_config = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid config file {config_path}: {e}", cause=e) from e
            user_config = full_config.get("voicepace", {})
        else:
            user_config = {}

        self._config = self._merge_dicts(copy.deepcopy(DEFAULT_CONFIG), user_config)

        for env_name, key in CREDENTIAL_ENV_VARS.items():
            value = os.environ.get(env_name)
            if value:
                self._config["credentials"][key] = value

    def _default_config_path(self) -> Path:
        env_path = os.environ.get("VOICEPACE_CONFIG")
        if env_path:
            return Path(env_path)
        return Path.home() / ".voicepace" / "config.toml"

    def _merge_dicts(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._merge_dicts(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a value using dot notation (e.g., 'session.vad_eos')"""
        keys = key_path.split(".")
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    @property
    def credentials(self):
        """Validated credentials from config file and environment.

        Raises:
            ConfigurationError: If app_id, api_key or api_secret is missing

        """
        from ..recognition.types import Credentials

        return Credentials.from_mapping(self.get("credentials", {})).validate()

    @property
    def vendor(self) -> str:
        return str(self.get("session.vendor", "xfyun"))

    @property
    def service_url(self) -> str:
        return str(self.get("service.url", DEFAULT_CONFIG["service"]["url"]))

    @property
    def max_duration_s(self) -> float:
        return float(self.get("session.max_duration_s", 60.0) or 0.0)

    @property
    def analytics_window_seconds(self) -> float:
        return float(self.get("analytics.window_seconds", 10.0))

    @property
    def analytics_bands(self) -> dict[str, Any]:
        return dict(self.get("analytics.bands", {}))


# Global singleton instance
_config_loader: ConfigLoader | None = None


def get_config() -> ConfigLoader:
    """Get the global config loader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def reset_config() -> None:
    """Drop the cached loader so the next get_config() re-reads files."""
    global _config_loader
    _config_loader = None


# Re-export logging functions
from .logging import get_logger, setup_logging  # noqa: E402, F401
