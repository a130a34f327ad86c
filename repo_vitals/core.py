"""
Core analysis logic for Repo Vitals.

analyze_repository() runs the fetch steps one after another. Only the
repository lookup is allowed to fail the analysis; every later step falls
back to an empty or zero value so a complete RepositoryMetrics record is
always produced.
"""

from datetime import datetime, timezone
from typing import Callable, TypeVar

from rich.console import Console

from repo_vitals.github import (
    CodeFrequency,
    GitHubCommit,
    GitHubIssue,
    GitHubRelease,
    PRStats,
    StarGrowth,
    fetch_closed_issues_count,
    fetch_code_frequency,
    fetch_commits,
    fetch_issues,
    fetch_languages,
    fetch_open_pull_requests_count,
    fetch_pr_stats,
    fetch_releases,
    fetch_repository,
    fetch_star_growth,
    format_github_datetime,
)
from repo_vitals.metrics.bus_factor import calculate_top_contributor_ratio
from repo_vitals.metrics.health import HealthSignals, calculate_health_score
from repo_vitals.metrics.releases import calculate_release_stats
from repo_vitals.metrics.response_time import calculate_median_issue_response_time
from repo_vitals.models import AnalysisStatus, RepositoryMetrics, StatusCallback

console = Console(stderr=True)

T = TypeVar("T")

ANALYSIS_PREFIX = "Failed to fetch repository: "


class AnalysisError(Exception):
    """Raised when a repository cannot be analyzed at all."""

    def __init__(self, owner: str, repo: str, reason: str):
        super().__init__(f"{ANALYSIS_PREFIX}{reason}")
        self.owner = owner
        self.repo = repo
        self.reason = reason


class ProgressEmitter:
    """Forwards progress events to a callback, never letting progress go back."""

    def __init__(self, callback: StatusCallback | None = None):
        self._callback = callback
        self.progress = 0

    def __call__(self, step: str, message: str, progress: int) -> None:
        self.progress = max(self.progress, min(progress, 100))
        if self._callback:
            self._callback(AnalysisStatus(step, message, self.progress))

    def interpolate(
        self, step: str, label: str, start: int, span: int
    ) -> Callable[[int, int], None]:
        """Page callback mapping (fetched, limit) onto [start, start + span]."""

        def on_page(current: int, total: int) -> None:
            fraction = min(current / total, 1) if total > 0 else 1
            self(step, f"Fetching {label} ({current})...", start + int(fraction * span))

        return on_page


def _run_step(
    emit: ProgressEmitter,
    step: str,
    label: str,
    action: Callable[[], T],
    default: T,
    done_progress: int,
    describe: Callable[[T], str],
) -> T:
    """Run an optional step, substituting `default` if it fails."""
    try:
        result = action()
    except Exception as e:
        console.print(
            f"[yellow]⚠️  Failed to {label}, continuing without this data: {e}[/yellow]"
        )
        emit(step, f"⚠ Failed to {label}", done_progress)
        return default

    message = describe(result)
    console.print(f"[dim]✓ {message}[/dim]")
    emit(step, f"✓ {message}", done_progress)
    return result


def analyze_repository(
    owner: str,
    repo: str,
    on_progress: StatusCallback | None = None,
    now: datetime | None = None,
) -> RepositoryMetrics:
    """
    Analyze a GitHub repository and calculate all metrics.

    Args:
        owner: Repository owner (user or organization).
        repo: Repository name.
        on_progress: Optional callback receiving AnalysisStatus events.
        now: Reference time for age calculations (default: current UTC time).

    Returns:
        The complete metrics record.

    Raises:
        AnalysisError: If the repository cannot be fetched.
    """
    now = now or datetime.now(timezone.utc)
    emit = ProgressEmitter(on_progress)

    console.print(f"Analyzing [bold cyan]{owner}/{repo}[/bold cyan]...")
    emit("init", "Starting analysis...", 0)

    # Repository info is required
    emit("repo", "Fetching repository info...", 10)
    try:
        repository = fetch_repository(owner, repo)
    except Exception as e:
        raise AnalysisError(owner, repo, str(e) or type(e).__name__) from e
    console.print("[dim]✓ Fetched repository info[/dim]")
    emit("repo", "✓ Repository info fetched", 15)

    emit("issues", "Fetching issues...", 20)
    issues: list[GitHubIssue] = _run_step(
        emit,
        "issues",
        "fetch issues",
        lambda: fetch_issues(
            owner,
            repo,
            on_progress=emit.interpolate("issues", "issues", 20, 10),
        ),
        [],
        30,
        lambda result: f"Fetched {len(result)} issues",
    )

    # Search API gives exact totals; fall back to the fetched sample
    emit("issue-counts", "Getting issue statistics...", 32)
    open_issues_count = repository.open_issues_count
    try:
        closed_issues_count = fetch_closed_issues_count(owner, repo)
        console.print(
            f"[dim]✓ Found {open_issues_count} open and {closed_issues_count} closed issues[/dim]"
        )
        emit("issue-counts", "✓ Issue statistics fetched", 32)
    except Exception as e:
        console.print(
            f"[yellow]⚠️  Failed to get accurate issue counts, using fetched issues: {e}[/yellow]"
        )
        open_issues_count = sum(1 for issue in issues if issue.state == "open")
        closed_issues_count = sum(1 for issue in issues if issue.state == "closed")
        emit("issue-counts", "⚠ Using fetched issues for issue statistics", 32)

    emit("commits", "Fetching commits...", 40)
    commits: list[GitHubCommit] = _run_step(
        emit,
        "commits",
        "fetch commits",
        lambda: fetch_commits(
            owner,
            repo,
            days=90,
            now=now,
            on_progress=emit.interpolate("commits", "commits", 40, 15),
        ),
        [],
        55,
        lambda result: f"Fetched {len(result)} commits",
    )

    emit("releases", "Fetching releases...", 55)
    releases: list[GitHubRelease] = _run_step(
        emit,
        "releases",
        "fetch releases",
        lambda: fetch_releases(
            owner,
            repo,
            on_progress=emit.interpolate("releases", "releases", 55, 10),
        ),
        [],
        65,
        lambda result: f"Fetched {len(result)} releases",
    )

    median_issue_response_time: float | None = None
    if issues:
        emit("response-time", "Calculating response times...", 70)
        median_issue_response_time = _run_step(
            emit,
            "response-time",
            "calculate response time",
            lambda: calculate_median_issue_response_time(owner, repo, issues),
            None,
            85,
            lambda result: (
                f"Median response time: {result:.2f} hours"
                if result is not None
                else "Median response time: N/A"
            ),
        )

    total_commits_last_90_days = len(commits)
    top_contributor_ratio = calculate_top_contributor_ratio(commits)
    release_rollup = calculate_release_stats(releases, now=now)

    emit("additional", "Fetching additional data...", 87)
    languages: dict[str, int] = _run_step(
        emit,
        "additional",
        "fetch languages",
        lambda: fetch_languages(owner, repo),
        {},
        87,
        lambda result: f"Fetched {len(result)} languages",
    )
    open_pull_requests: int = _run_step(
        emit,
        "additional",
        "fetch open pull requests",
        lambda: fetch_open_pull_requests_count(owner, repo),
        0,
        87,
        lambda result: f"Found {result} open pull requests",
    )

    emit("analytics", "Analyzing star growth...", 90)
    star_growth: StarGrowth = _run_step(
        emit,
        "analytics",
        "analyze star growth",
        lambda: fetch_star_growth(owner, repo, now=now),
        StarGrowth(0, 0),
        90,
        lambda result: (
            f"Star growth: {result.stars_per_month}/month, {result.recent_growth} recent"
        ),
    )

    emit("analytics", "Calculating PR merge rate...", 93)
    pr_stats: PRStats = _run_step(
        emit,
        "analytics",
        "calculate PR merge rate",
        lambda: fetch_pr_stats(owner, repo),
        PRStats(0, 0, 0.0),
        93,
        lambda result: (
            f"PR merge rate: {result.merge_rate:.1f}% "
            f"({result.merged}/{result.merged + result.closed})"
        ),
    )

    emit("analytics", "Analyzing code frequency...", 96)
    code_frequency: CodeFrequency = _run_step(
        emit,
        "analytics",
        "analyze code frequency",
        lambda: fetch_code_frequency(owner, repo),
        CodeFrequency(0, 0, 0),
        96,
        lambda result: (
            f"Code activity: +{result.additions} -{result.deletions} (last 12 weeks)"
        ),
    )

    emit("calculating", "Calculating health score...", 98)
    latest_release = release_rollup.latest_release
    health_score = calculate_health_score(
        HealthSignals(
            median_issue_response_time=median_issue_response_time,
            open_issues_count=open_issues_count,
            closed_issues_count=closed_issues_count,
            total_commits_last_90_days=total_commits_last_90_days,
            top_contributor_ratio=top_contributor_ratio,
            latest_release_days_ago=latest_release.days_ago if latest_release else None,
        )
    )
    console.print(f"[dim]✓ Health score: {health_score}/100[/dim]")

    metrics = RepositoryMetrics(
        owner=owner,
        name=repository.name,
        full_name=repository.full_name,
        description=repository.description,
        stars=repository.stargazers_count,
        forks=repository.forks_count,
        open_issues=repository.open_issues_count,
        median_issue_response_time=median_issue_response_time,
        open_issues_count=open_issues_count,
        closed_issues_count=closed_issues_count,
        total_commits_last_90_days=total_commits_last_90_days,
        top_contributor_ratio=top_contributor_ratio,
        releases=release_rollup.releases,
        total_releases=release_rollup.total_releases,
        releases_last_90_days=release_rollup.releases_last_90_days,
        total_downloads=release_rollup.total_downloads,
        average_downloads_per_release=release_rollup.average_downloads_per_release,
        latest_release=latest_release,
        watchers=repository.subscribers_count,
        last_commit_date=format_github_datetime(
            commits[0].author_date
            if commits and commits[0].author_date
            else repository.updated_at
        ),
        open_pull_requests=open_pull_requests,
        license=repository.license_name,
        languages=languages,
        stars_per_month=star_growth.stars_per_month,
        recent_star_growth=star_growth.recent_growth,
        pr_merge_rate=pr_stats.merge_rate,
        code_additions=code_frequency.additions,
        code_deletions=code_frequency.deletions,
        total_code_changes=code_frequency.total_changes,
        health_score=health_score,
    )

    emit("complete", "✓ Analysis complete!", 100)
    return metrics
