"""
Shared fixtures for the Repo Vitals test suite.
"""

import pytest

import repo_vitals.config
from repo_vitals.models import ReleaseAsset, ReleaseStats, RepositoryMetrics


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from real credentials and the user's cache directory."""
    for name in (
        "GITHUB_TOKEN",
        "REPO_VITALS_API_URL",
        "REPO_VITALS_CACHE_DIR",
        "REPO_VITALS_CACHE_TTL",
    ):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(repo_vitals.config, "PROJECT_ROOT", tmp_path / "project")
    monkeypatch.setattr(repo_vitals.config, "_GITHUB_TOKEN", None)
    monkeypatch.setattr(repo_vitals.config, "_CACHE_DIR", tmp_path / "cache")
    monkeypatch.setattr(repo_vitals.config, "_CACHE_TTL", None)
    monkeypatch.setattr(repo_vitals.config, "VERIFY_SSL", True)
    yield tmp_path


def make_release(
    tag: str = "v1.0.0",
    days_ago: int = 10,
    downloads: int = 100,
    is_prerelease: bool = False,
) -> ReleaseStats:
    assets = [ReleaseAsset(name=f"{tag}.tar.gz", size=2048, downloads=downloads)]
    return ReleaseStats(
        tag=tag,
        name=tag,
        published_at="2026-10-08T12:00:00Z",
        days_ago=days_ago,
        total_downloads=downloads,
        assets_count=len(assets),
        is_prerelease=is_prerelease,
        assets=assets,
    )


def make_metrics(**overrides) -> RepositoryMetrics:
    release = make_release()
    values = {
        "owner": "octo",
        "name": "widgets",
        "full_name": "octo/widgets",
        "description": "Widgets for everyone",
        "stars": 120,
        "forks": 8,
        "open_issues": 5,
        "median_issue_response_time": None,
        "open_issues_count": 5,
        "closed_issues_count": 45,
        "total_commits_last_90_days": 30,
        "top_contributor_ratio": 60.0,
        "releases": [release],
        "total_releases": 1,
        "releases_last_90_days": 1,
        "total_downloads": 100,
        "average_downloads_per_release": 100,
        "latest_release": release,
        "watchers": 4,
        "last_commit_date": "2026-10-17T08:00:00Z",
        "open_pull_requests": 2,
        "license": "MIT License",
        "languages": {"Python": 9000, "Shell": 1000},
        "stars_per_month": 3,
        "recent_star_growth": 3,
        "pr_merge_rate": 75.0,
        "code_additions": 500,
        "code_deletions": 200,
        "total_code_changes": 700,
        "health_score": 68,
    }
    values.update(overrides)
    return RepositoryMetrics(**values)


@pytest.fixture
def sample_metrics() -> RepositoryMetrics:
    return make_metrics()


@pytest.fixture
def metrics_factory():
    """Build RepositoryMetrics with selected fields overridden."""
    return make_metrics


@pytest.fixture
def release_factory():
    """Build ReleaseStats records."""
    return make_release
