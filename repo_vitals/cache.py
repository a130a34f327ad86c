"""
Cache management for Repo Vitals.

Keeps a snapshot of the last analysis so the CLI can show it again (for
example in the releases view) without hitting the API. A snapshot is only
reused for the same repository and while it is younger than the cache TTL.
"""

import gzip
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from repo_vitals.config import get_cache_dir, get_cache_ttl
from repo_vitals.models import RepositoryMetrics, metrics_from_dict, metrics_to_dict

CACHE_FILENAME = "last_analysis.json.gz"


def _get_cache_path() -> Path:
    return get_cache_dir() / CACHE_FILENAME


def is_cache_valid(entry: dict[str, Any], now: datetime | None = None) -> bool:
    """
    Check if a snapshot entry is still fresh.

    Args:
        entry: Snapshot entry with fetched_at (ISO format) and ttl_seconds.
            The configured TTL caps the stored one.
        now: Reference time (default: current UTC time).

    Returns:
        True if the snapshot is younger than its TTL, False otherwise.
    """
    if "fetched_at" not in entry:
        return False

    current_ttl = get_cache_ttl()
    try:
        fetched_at = datetime.fromisoformat(entry["fetched_at"])
        # A shorter TTL configured since the snapshot was written applies too
        ttl_seconds = min(int(entry.get("ttl_seconds", current_ttl)), current_ttl)

        # Make fetched_at timezone-aware if it isn't
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)

        now = now or datetime.now(timezone.utc)
        age_seconds = (now - fetched_at).total_seconds()

        return 0 <= age_seconds < ttl_seconds
    except (ValueError, TypeError):
        # Invalid datetime format
        return False


def _read_entry() -> dict[str, Any] | None:
    cache_path = _get_cache_path()
    if not cache_path.exists():
        return None

    try:
        with gzip.open(cache_path, "rt", encoding="utf-8") as f:
            entry = json.load(f)
    except (json.JSONDecodeError, OSError, EOFError):
        # Corrupted cache - treat as missing
        return None

    return entry if isinstance(entry, dict) else None


def load_last_analysis(
    owner: str, repo: str, now: datetime | None = None
) -> RepositoryMetrics | None:
    """
    Load the cached analysis for owner/repo.

    Returns:
        The cached metrics, or None when there is no fresh snapshot for this
        repository.
    """
    entry = _read_entry()
    if entry is None:
        return None

    same_repo = (
        str(entry.get("owner", "")).lower() == owner.lower()
        and str(entry.get("repo", "")).lower() == repo.lower()
    )
    if not same_repo or not is_cache_valid(entry, now=now):
        return None

    try:
        return metrics_from_dict(entry["metrics"])
    except (KeyError, TypeError):
        # Snapshot written by an incompatible version
        return None


def save_last_analysis(
    metrics: RepositoryMetrics, owner: str | None = None, repo: str | None = None
) -> None:
    """
    Store metrics as the last analysis, replacing any previous snapshot.

    Args:
        metrics: The analysis result.
        owner: Owner the analysis was requested for (default: metrics.owner).
        repo: Repository name the analysis was requested for (default: metrics.name).
    """
    cache_path = _get_cache_path()
    cache_path.parent.mkdir(parents=True, exist_ok=True)

    entry = {
        "owner": owner or metrics.owner,
        "repo": repo or metrics.name,
        "fetched_at": datetime.now(timezone.utc).isoformat(),
        "ttl_seconds": get_cache_ttl(),
        "metrics": metrics_to_dict(metrics),
    }
    with gzip.open(cache_path, "wt", encoding="utf-8") as f:
        json.dump(entry, f, indent=2, ensure_ascii=False, sort_keys=True)


def clear_cache() -> int:
    """
    Remove the cached snapshot.

    Returns:
        Number of cache files cleared.
    """
    cache_path = _get_cache_path()
    if not cache_path.exists():
        return 0
    cache_path.unlink()
    return 1


def get_cache_stats(now: datetime | None = None) -> dict[str, Any]:
    """
    Describe the cached snapshot.

    Returns:
        Dictionary with cache_dir, exists, and (when present) repository,
        fetched_at and is_valid.
    """
    cache_dir = get_cache_dir()
    entry = _read_entry()
    if entry is None:
        return {"cache_dir": str(cache_dir), "exists": False}

    return {
        "cache_dir": str(cache_dir),
        "exists": True,
        "repository": f"{entry.get('owner', 'unknown')}/{entry.get('repo', 'unknown')}",
        "fetched_at": entry.get("fetched_at", "unknown"),
        "is_valid": is_cache_valid(entry, now=now),
    }
