"""Release and download rollups."""

from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from repo_vitals.github import GitHubRelease, format_github_datetime
from repo_vitals.metrics.base import round_half_up
from repo_vitals.models import ReleaseAsset, ReleaseStats

RECENT_RELEASE_WINDOW_DAYS = 90


class ReleaseRollup(NamedTuple):
    """Per-release stats plus repository-level release figures."""

    releases: list[ReleaseStats]
    total_releases: int
    releases_last_90_days: int
    total_downloads: int
    average_downloads_per_release: int
    latest_release: ReleaseStats | None


def build_release_stats(release: GitHubRelease, now: datetime) -> ReleaseStats:
    """Summarize a single release relative to `now`."""
    days_ago = int((now - release.published).total_seconds() // 86400)

    return ReleaseStats(
        tag=release.tag_name,
        name=release.name or release.tag_name,
        published_at=format_github_datetime(release.published),
        days_ago=days_ago,
        total_downloads=sum(asset.download_count for asset in release.assets),
        assets_count=len(release.assets),
        is_prerelease=release.prerelease,
        assets=[
            ReleaseAsset(
                name=asset.name,
                size=asset.size,
                downloads=asset.download_count,
            )
            for asset in release.assets
        ],
    )


def calculate_release_stats(
    releases: list[GitHubRelease], now: datetime | None = None
) -> ReleaseRollup:
    """
    Roll up release statistics.

    - total_downloads covers every release, prereleases included.
    - total_releases, the average and latest_release consider stable
      releases only.
    - releases_last_90_days counts stable releases published within the
      last 90 days.

    Args:
        releases: Non-draft releases, newest first.
        now: Reference time (default: current UTC time).
    """
    now = now or datetime.now(timezone.utc)
    recent_cutoff = now - timedelta(days=RECENT_RELEASE_WINDOW_DAYS)

    release_stats = [build_release_stats(release, now) for release in releases]
    stable = [r for r in release_stats if not r.is_prerelease]

    releases_last_90_days = sum(
        1
        for release in releases
        if not release.prerelease and release.published >= recent_cutoff
    )
    total_downloads = sum(r.total_downloads for r in release_stats)

    return ReleaseRollup(
        releases=release_stats,
        total_releases=len(stable),
        releases_last_90_days=releases_last_90_days,
        total_downloads=total_downloads,
        average_downloads_per_release=(
            round_half_up(total_downloads / len(stable)) if stable else 0
        ),
        latest_release=stable[0] if stable else None,
    )
