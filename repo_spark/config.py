"""
Configuration management for repo-spark.

Settings are resolved in this order:
1. Values set explicitly at runtime (CLI flags)
2. REPO_SPARK_* environment variables
3. .repo-spark.toml (local config)
4. pyproject.toml (project-level config)
5. Built-in defaults
"""

import os
import tomllib
from pathlib import Path
from typing import Any, NamedTuple

# project_root is the parent directory of repo_spark/
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Global configuration for SSL verification
# Can be set to False by CLI --insecure flag
VERIFY_SSL = True

# Default store directory: ~/.cache/repo-spark
DEFAULT_STORE_DIR = Path.home() / ".cache" / "repo-spark"
# Stored analyses younger than this are returned instead of re-ingesting
DEFAULT_RESULT_TTL = 60 * 60
# In-process TTL for raw API responses
DEFAULT_API_CACHE_TTL = 5 * 60
# Time budget for ingesting a single repository in user mode
DEFAULT_REPO_TIMEOUT = 120.0

DEFAULT_MAX_COMMITS = 500
DEFAULT_MAX_DETAILED_COMMITS = 100
DEFAULT_PAGE_SIZE = 50

_STORE_DIR: Path | None = None
_RESULT_TTL: int | None = None


class IngestionLimits(NamedTuple):
    """Caps applied while listing commits for one repository."""

    max_commits: int = DEFAULT_MAX_COMMITS
    max_detailed_commits: int = DEFAULT_MAX_DETAILED_COMMITS
    page_size: int = DEFAULT_PAGE_SIZE


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
    Return the [tool.repo-spark] table.

    .repo-spark.toml takes priority; pyproject.toml is only consulted when the
    local file has no such table.
    """
    for filename in (".repo-spark.toml", "pyproject.toml"):
        config_path = PROJECT_ROOT / filename
        if not config_path.exists():
            continue
        section = load_config_file(config_path).get("tool", {}).get("repo-spark")
        if section:
            return section
    return {}


def _get_section(name: str) -> dict[str, Any]:
    section = get_tool_config().get(name, {})
    return section if isinstance(section, dict) else {}


def set_verify_ssl(verify: bool) -> None:
    """
    Set the SSL verification setting globally.

    Args:
        verify: Whether to verify SSL certificates.
    """
    global VERIFY_SSL
    VERIFY_SSL = verify


def get_verify_ssl() -> bool:
    """Return whether SSL verification is enabled."""
    return VERIFY_SSL


def get_store_dir() -> Path:
    """
    Get the directory holding stored analyses.

    Priority:
    1. Explicitly set value via set_store_dir()
    2. REPO_SPARK_STORE_DIR environment variable
    3. [tool.repo-spark.store] directory
    4. Default: ~/.cache/repo-spark

    Returns:
        Path to the store directory.
    """
    if _STORE_DIR is not None:
        return _STORE_DIR

    env_store_dir = os.getenv("REPO_SPARK_STORE_DIR")
    if env_store_dir:
        return Path(env_store_dir).expanduser()

    store_config = _get_section("store")
    if "directory" in store_config:
        return Path(store_config["directory"]).expanduser()

    return DEFAULT_STORE_DIR


def set_store_dir(path: Path | str) -> None:
    """Set the store directory path explicitly."""
    global _STORE_DIR
    _STORE_DIR = Path(path).expanduser()


def get_result_ttl() -> int:
    """
    Get how long (seconds) a stored analysis is served instead of re-ingesting.

    Priority:
    1. Explicitly set value via set_result_ttl()
    2. REPO_SPARK_RESULT_TTL environment variable
    3. [tool.repo-spark.store] result_ttl_seconds
    4. Default: 3600 (1 hour)
    """
    if _RESULT_TTL is not None:
        return _RESULT_TTL

    env_ttl = os.getenv("REPO_SPARK_RESULT_TTL")
    if env_ttl:
        try:
            return int(env_ttl)
        except ValueError:
            pass

    store_config = _get_section("store")
    if "result_ttl_seconds" in store_config:
        return int(store_config["result_ttl_seconds"])

    return DEFAULT_RESULT_TTL


def set_result_ttl(seconds: int) -> None:
    """Set the result cache TTL explicitly."""
    global _RESULT_TTL
    _RESULT_TTL = seconds


def get_api_cache_ttl() -> int:
    """Get the TTL (seconds) for cached API responses."""
    env_ttl = os.getenv("REPO_SPARK_API_CACHE_TTL")
    if env_ttl:
        try:
            return int(env_ttl)
        except ValueError:
            pass

    cache_config = _get_section("cache")
    if "ttl_seconds" in cache_config:
        return int(cache_config["ttl_seconds"])

    return DEFAULT_API_CACHE_TTL


def get_repo_timeout() -> float:
    """Get the per-repository ingestion time budget in seconds."""
    env_timeout = os.getenv("REPO_SPARK_REPO_TIMEOUT")
    if env_timeout:
        try:
            return float(env_timeout)
        except ValueError:
            pass

    ingestion_config = _get_section("ingestion")
    if "repo_timeout_seconds" in ingestion_config:
        return float(ingestion_config["repo_timeout_seconds"])

    return DEFAULT_REPO_TIMEOUT


def get_ingestion_limits() -> IngestionLimits:
    """
    Build ingestion caps from [tool.repo-spark.ingestion].

    Missing keys keep their defaults (500 listed, 100 detailed, 50 per page).
    """
    ingestion_config = _get_section("ingestion")
    return IngestionLimits(
        max_commits=int(ingestion_config.get("max_commits", DEFAULT_MAX_COMMITS)),
        max_detailed_commits=int(
            ingestion_config.get(
                "max_detailed_commits", DEFAULT_MAX_DETAILED_COMMITS
            )
        ),
        page_size=int(ingestion_config.get("page_size", DEFAULT_PAGE_SIZE)),
    )
