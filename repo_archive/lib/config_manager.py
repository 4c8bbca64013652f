"""Unified configuration manager with hierarchy: .env → environment → defaults.

This module provides a centralized way to access configuration values:
1. Infrastructure-as-code via .env at the git root (loaded on import)
2. Process environment variables
3. Sensible hardcoded defaults (app works out of the box)

Usage:
    from repo_archive.lib.config_manager import config

    owner = config.get("ARCHIVE_REPO_OWNER")
    attempts = config.get("RETRY_MAX_ATTEMPTS")  # coerced to int
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from repo_archive.lib.defaults import DEFAULTS, SENSITIVE_KEYS, get_default

logger = logging.getLogger(__name__)


def _find_git_root(start_path: Optional[Path] = None) -> Path:
    """Walk up directory tree to find .git/ folder."""
    current = start_path or Path.cwd()
    current = current.resolve()

    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent

    raise FileNotFoundError("No .git directory found in any parent directory")


def _coerce_type(value: str, default: Any) -> Any:
    """Coerce string value to match the type of the default.

    Args:
        value: String value from env
        default: Default value (determines target type)

    Returns:
        Value coerced to appropriate type
    """
    if default is None:
        return value

    if isinstance(default, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(default, int):
        try:
            return int(value)
        except ValueError:
            return default
    if isinstance(default, float):
        try:
            return float(value)
        except ValueError:
            return default
    return value


def _format_env_line(key: str, value: Any) -> str:
    # Quote strings with spaces
    if isinstance(value, str) and " " in value:
        return f'{key}="{value}"'
    return f"{key}={value}"


class ConfigManager:
    """Manages configuration with .env → environment → defaults hierarchy."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize the config manager and load .env.

        Args:
            env_path: Explicit .env location (defaults to <git root>/.env)
        """
        self._env_path = env_path
        self._env_loaded = False
        self._load_env()

    def _resolve_env_path(self) -> Optional[Path]:
        if self._env_path is not None:
            return self._env_path
        try:
            return _find_git_root() / ".env"
        except FileNotFoundError:
            logger.warning("Could not find git root, .env not loaded")
            return None

    def _load_env(self) -> None:
        """Load .env file from git root."""
        if self._env_loaded:
            return

        env_path = self._resolve_env_path()
        if env_path is not None:
            if env_path.exists():
                load_dotenv(dotenv_path=env_path, override=True)
                logger.debug(f"Loaded .env from {env_path}")
            else:
                logger.debug(f"No .env file found at {env_path}")

        self._env_loaded = True

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value (.env/environment → defaults).

        Args:
            key: Configuration key
            default: Override default (uses DEFAULTS if not provided)

        Returns:
            Configuration value
        """
        env_value = os.getenv(key)
        if env_value is not None:
            default_val = default if default is not None else get_default(key)
            return _coerce_type(env_value, default_val)

        if default is not None:
            return default
        return get_default(key)

    def get_all(self) -> dict[str, Any]:
        """Get all configuration values.

        Returns:
            Dictionary of all config keys and their resolved values
        """
        return {key: self.get(key) for key in DEFAULTS}

    def write_to_env_file(self, values: dict[str, Any]) -> Path:
        """Write config values to the .env file.

        Existing lines are kept; keys present in ``values`` are updated in
        place, new keys are appended. The values are also applied to the
        running process.

        Args:
            values: Keys and values to persist

        Returns:
            Path to the .env file
        """
        env_path = self._resolve_env_path() or Path.cwd() / ".env"

        existing_lines: list[str] = []
        if env_path.exists():
            with open(env_path, "r") as f:
                existing_lines = [line.rstrip("\n") for line in f]

        pending = dict(values)
        updated_lines = []
        for line in existing_lines:
            if "=" in line and not line.startswith("#"):
                key = line.split("=", 1)[0]
                if key in pending:
                    updated_lines.append(_format_env_line(key, pending.pop(key)))
                    continue
            updated_lines.append(line)

        if pending:
            updated_lines.append("")
            updated_lines.append("# Added by repo-archive")
            for key in sorted(pending):
                updated_lines.append(_format_env_line(key, pending[key]))

        with open(env_path, "w") as f:
            f.write("\n".join(updated_lines))
            f.write("\n")

        for key, value in values.items():
            os.environ[key] = str(value)

        logger.info(f"Updated .env file at {env_path}")
        return env_path

    def is_sensitive(self, key: str) -> bool:
        """Check if a key contains sensitive data."""
        return key in SENSITIVE_KEYS

    def mask_value(self, key: str, value: Any) -> str:
        """Mask sensitive values for display.

        Args:
            key: Configuration key
            value: Value to potentially mask

        Returns:
            Masked or original value as string
        """
        if not self.is_sensitive(key):
            return str(value)

        str_value = str(value)
        if not str_value:
            return ""
        if len(str_value) <= 8:
            return "*" * len(str_value)
        return str_value[:4] + "*" * (len(str_value) - 8) + str_value[-4:]


# Singleton instance
config = ConfigManager()
