"""Default configuration values for the application.

All hardcoded defaults live here. The app should be fully functional
with these defaults (minus the GitHub token, which the user supplies).

Config hierarchy: .env → process environment → these defaults
"""

from typing import Any

# =============================================================================
# Configuration Defaults
# =============================================================================

DEFAULTS: dict[str, Any] = {
    # -------------------------------------------------------------------------
    # GitHub
    # -------------------------------------------------------------------------
    "GITHUB_TOKEN": "",  # Empty = must be passed per request
    "GITHUB_API_URL": "https://api.github.com",
    "GITHUB_TIMEOUT": 30.0,

    # -------------------------------------------------------------------------
    # Archive repository
    # -------------------------------------------------------------------------
    "ARCHIVE_REPO_OWNER": "wonderl17",
    "ARCHIVE_REPO_NAME": "archive-store",
    "ARCHIVE_BRANCH": "main",

    # -------------------------------------------------------------------------
    # Retry
    # -------------------------------------------------------------------------
    "RETRY_MAX_ATTEMPTS": 3,
    "RETRY_BASE_DELAY": 1.0,  # seconds
    "RETRY_BACKOFF": "exponential",  # or "linear"

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    "LOG_LEVEL": "INFO",
    "LOG_FORMAT": "json",  # or "text"
}

# Keys whose values are masked when displayed
SENSITIVE_KEYS: set[str] = {
    "GITHUB_TOKEN",
}


def get_default(key: str) -> Any:
    """Get the default value for a config key.

    Args:
        key: Configuration key

    Returns:
        Default value or None if key not found
    """
    return DEFAULTS.get(key)
