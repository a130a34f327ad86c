"""
Configuration management for Repo Vitals.

Settings are resolved from (highest priority first):
1. Explicit setters (used by CLI options)
2. Environment variables (a local .env file is loaded on import)
3. .repo-vitals.toml (local config)
4. pyproject.toml [tool.repo-vitals] (project-level config)
5. Built-in defaults
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# project_root is the parent directory of repo_vitals/
PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_RETRIES = 3

# Global configuration for SSL verification
# Default: True (verify SSL certificates)
# Can be set to False by CLI --insecure flag
VERIFY_SSL = True

# Cache configuration
# Default cache directory: ~/.cache/repo-vitals
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "repo-vitals"
# A cached analysis is only reused for one hour
DEFAULT_CACHE_TTL = 60 * 60

# Global settings (can be overridden)
_GITHUB_TOKEN: str | None = None
_CACHE_DIR: Path | None = None
_CACHE_TTL: int | None = None


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def get_tool_config() -> dict[str, Any]:
    """
    Return the [tool.repo-vitals] table.

    .repo-vitals.toml wins over pyproject.toml when both define the table.
    """
    for filename in (".repo-vitals.toml", "pyproject.toml"):
        config = load_config_file(PROJECT_ROOT / filename)
        section = config.get("tool", {}).get("repo-vitals")
        if section:
            return section
    return {}


def _get_cache_config() -> dict[str, Any]:
    return get_tool_config().get("cache", {})


def set_github_token(token: str | None) -> None:
    """
    Set the GitHub credential explicitly.

    Args:
        token: Personal access token, or None to fall back to GITHUB_TOKEN.
    """
    global _GITHUB_TOKEN
    _GITHUB_TOKEN = token or None


def get_github_token() -> str | None:
    """
    Get the GitHub credential.

    Requests are sent unauthenticated when no token is configured, which
    comes with a much lower API rate limit.

    Returns:
        The token, or None.
    """
    if _GITHUB_TOKEN:
        return _GITHUB_TOKEN
    return os.getenv("GITHUB_TOKEN") or None


def get_api_url() -> str:
    """Base URL of the GitHub REST API, without a trailing slash."""
    env_url = os.getenv("REPO_VITALS_API_URL")
    if env_url:
        return env_url.rstrip("/")
    return str(get_tool_config().get("api_url", DEFAULT_API_URL)).rstrip("/")


def get_retries() -> int:
    """Retry budget for a single API request."""
    try:
        return int(get_tool_config().get("retries", DEFAULT_RETRIES))
    except (TypeError, ValueError):
        return DEFAULT_RETRIES


def set_verify_ssl(verify: bool) -> None:
    """
    Set the SSL verification setting globally.

    Args:
        verify: Whether to verify SSL certificates.
    """
    global VERIFY_SSL
    VERIFY_SSL = verify


def get_verify_ssl() -> bool:
    """
    Get the current SSL verification setting.

    Returns:
        Whether SSL verification is enabled.
    """
    return VERIFY_SSL


def get_cache_dir() -> Path:
    """
    Get the cache directory path.

    Priority:
    1. Explicitly set value via set_cache_dir()
    2. REPO_VITALS_CACHE_DIR environment variable
    3. [tool.repo-vitals.cache] directory
    4. Default: ~/.cache/repo-vitals

    Returns:
        Path to the cache directory.
    """
    if _CACHE_DIR is not None:
        return _CACHE_DIR

    env_cache_dir = os.getenv("REPO_VITALS_CACHE_DIR")
    if env_cache_dir:
        return Path(env_cache_dir).expanduser()

    cache_config = _get_cache_config()
    if "directory" in cache_config:
        return Path(cache_config["directory"]).expanduser()

    return DEFAULT_CACHE_DIR


def set_cache_dir(path: Path | str) -> None:
    """
    Set the cache directory path explicitly.

    Args:
        path: Path to the cache directory.
    """
    global _CACHE_DIR
    _CACHE_DIR = Path(path).expanduser()


def get_cache_ttl() -> int:
    """
    Get the cache TTL (Time To Live) in seconds.

    Priority:
    1. Explicitly set value via set_cache_ttl()
    2. REPO_VITALS_CACHE_TTL environment variable
    3. [tool.repo-vitals.cache] ttl_seconds
    4. Default: 3600 (1 hour)

    Returns:
        TTL in seconds.
    """
    if _CACHE_TTL is not None:
        return _CACHE_TTL

    env_cache_ttl = os.getenv("REPO_VITALS_CACHE_TTL")
    if env_cache_ttl:
        try:
            return int(env_cache_ttl)
        except ValueError:
            pass

    cache_config = _get_cache_config()
    if "ttl_seconds" in cache_config:
        return int(cache_config["ttl_seconds"])

    return DEFAULT_CACHE_TTL


def set_cache_ttl(seconds: int) -> None:
    """
    Set the cache TTL (Time To Live) explicitly.

    Args:
        seconds: TTL in seconds.
    """
    global _CACHE_TTL
    _CACHE_TTL = seconds


def is_cache_enabled() -> bool:
    """
    Check if the last-analysis cache is enabled.

    Returns:
        Whether cache is enabled (default: True).
    """
    cache_config = _get_cache_config()
    if "enabled" in cache_config:
        return bool(cache_config["enabled"])
    return True
