"""
Result records produced by a repository analysis.
"""

from typing import Any, Callable, NamedTuple


class ReleaseAsset(NamedTuple):
    """A downloadable file attached to a release."""

    name: str
    size: int
    downloads: int


class ReleaseStats(NamedTuple):
    """Download and age figures for one non-draft release."""

    tag: str
    name: str
    published_at: str
    days_ago: int
    total_downloads: int
    assets_count: int
    is_prerelease: bool
    assets: list[ReleaseAsset]


class AnalysisStatus(NamedTuple):
    """A progress event emitted while an analysis runs."""

    step: str
    message: str
    progress: int  # 0-100


StatusCallback = Callable[[AnalysisStatus], None]


class RepositoryMetrics(NamedTuple):
    """The result of a repository analysis."""

    # Basic info
    owner: str
    name: str
    full_name: str
    description: str | None
    stars: int
    forks: int
    open_issues: int  # GitHub's open_issues_count (includes PRs)

    # Calculated metrics
    median_issue_response_time: float | None  # hours
    open_issues_count: int
    closed_issues_count: int
    total_commits_last_90_days: int
    top_contributor_ratio: float  # percentage (0-100)

    # Release metrics
    releases: list[ReleaseStats]
    total_releases: int
    releases_last_90_days: int
    total_downloads: int
    average_downloads_per_release: int
    latest_release: ReleaseStats | None

    # Additional metrics
    watchers: int
    last_commit_date: str
    open_pull_requests: int
    license: str | None
    languages: dict[str, int]

    # Advanced analytics
    stars_per_month: int
    recent_star_growth: int  # stars in last 30 days
    pr_merge_rate: float  # percentage (0-100)
    code_additions: int  # last 12 weeks
    code_deletions: int  # last 12 weeks
    total_code_changes: int  # last 12 weeks

    health_score: int  # 0-100


def release_to_dict(release: ReleaseStats) -> dict[str, Any]:
    data = release._asdict()
    data["assets"] = [asset._asdict() for asset in release.assets]
    return data


def release_from_dict(data: dict[str, Any]) -> ReleaseStats:
    assets = [ReleaseAsset(**asset) for asset in data.get("assets", [])]
    return ReleaseStats(**{**data, "assets": assets})


def metrics_to_dict(metrics: RepositoryMetrics) -> dict[str, Any]:
    """Convert metrics into a JSON-serializable dict (nested records included)."""
    data = metrics._asdict()
    data["releases"] = [release_to_dict(r) for r in metrics.releases]
    data["latest_release"] = (
        release_to_dict(metrics.latest_release) if metrics.latest_release else None
    )
    data["languages"] = dict(metrics.languages)
    return data


def metrics_from_dict(data: dict[str, Any]) -> RepositoryMetrics:
    """
    Rebuild metrics from a dict produced by metrics_to_dict().

    Raises:
        TypeError: If fields are missing or unexpected.
    """
    latest = data.get("latest_release")
    return RepositoryMetrics(
        **{
            **data,
            "releases": [release_from_dict(r) for r in data.get("releases", [])],
            "latest_release": release_from_dict(latest) if latest else None,
        }
    )
