"""
Command-line interface for Repo Vitals.
"""

import json
import re
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from repo_vitals.cache import (
    clear_cache,
    get_cache_stats,
    load_last_analysis,
    save_last_analysis,
)
from repo_vitals.config import (
    is_cache_enabled,
    set_cache_dir,
    set_cache_ttl,
    set_github_token,
    set_verify_ssl,
)
from repo_vitals.core import AnalysisError, analyze_repository
from repo_vitals.github import GitHubAPIError, fetch_rate_limit
from repo_vitals.http_client import close_http_client
from repo_vitals.metrics.health import (
    HealthSignals,
    compute_health_breakdown,
    get_health_score_interpretation,
)
from repo_vitals.models import AnalysisStatus, RepositoryMetrics, metrics_to_dict

# --- Typer App ---
app = typer.Typer(help="Analyze the health of a GitHub repository.")
console = Console()

_GITHUB_URL_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/(?P<owner>[^/\s]+)/(?P<repo>[^/\s#?]+)"
)
_OWNER_REPO_PATTERN = re.compile(r"^(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+)$")

RISK_COLORS = {
    "Critical": "red",
    "High": "red",
    "Medium": "yellow",
    "Low": "green",
    "None": "green",
}

# --- Helper Functions ---


def parse_repository_spec(spec: str) -> tuple[str, str]:
    """
    Parse a repository spec into (owner, repo).

    Accepts "owner/repo" or a GitHub URL such as
    "https://github.com/owner/repo" (a trailing ".git" is removed).

    Raises:
        ValueError: If the spec cannot be parsed.
    """
    spec = spec.strip().rstrip("/")
    match = _GITHUB_URL_PATTERN.match(spec) or _OWNER_REPO_PATTERN.match(spec)
    if not match:
        raise ValueError(
            f"Invalid repository '{spec}'. Use 'owner/repo' or a GitHub URL."
        )

    repo = match.group("repo")
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return match.group("owner"), repo


def _apply_options(
    token: str | None,
    insecure: bool,
    cache_dir: Path | None,
    cache_ttl: int | None,
) -> None:
    if token:
        set_github_token(token)
    if cache_dir:
        set_cache_dir(cache_dir)
    if cache_ttl:
        set_cache_ttl(cache_ttl)
    set_verify_ssl(not insecure)


def _resolve_target(target: str) -> tuple[str, str]:
    try:
        return parse_repository_spec(target)
    except ValueError as e:
        console.print(f"[yellow]⚠️  {e}[/yellow]")
        raise typer.Exit(code=1) from None


def load_metrics(
    owner: str, repo: str, use_cache: bool = True, show_progress: bool = True
) -> RepositoryMetrics:
    """
    Get metrics for a repository, reusing a fresh cached analysis if present.

    A new analysis is stored as the last analysis when caching is enabled.
    """
    cache_enabled = is_cache_enabled()
    if use_cache and cache_enabled:
        cached = load_last_analysis(owner, repo)
        if cached is not None:
            if show_progress:
                console.print(
                    f"[dim]Using cached analysis of {owner}/{repo} "
                    "(use --no-cache to refresh)[/dim]"
                )
            return cached

    try:
        if show_progress:
            with Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                BarColumn(),
                TextColumn("{task.percentage:>3.0f}%"),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task("Starting analysis...", total=100)

                def on_progress(status: AnalysisStatus) -> None:
                    progress.update(
                        task, completed=status.progress, description=status.message
                    )

                metrics = analyze_repository(owner, repo, on_progress=on_progress)
        else:
            metrics = analyze_repository(owner, repo)
    except AnalysisError as e:
        console.print(f"[red]Error: {e.reason}[/red]")
        raise typer.Exit(code=1) from None
    finally:
        close_http_client()

    if cache_enabled:
        save_last_analysis(metrics, owner=owner, repo=repo)
    return metrics


def _health_signals(metrics: RepositoryMetrics) -> HealthSignals:
    latest = metrics.latest_release
    return HealthSignals(
        median_issue_response_time=metrics.median_issue_response_time,
        open_issues_count=metrics.open_issues_count,
        closed_issues_count=metrics.closed_issues_count,
        total_commits_last_90_days=metrics.total_commits_last_90_days,
        top_contributor_ratio=metrics.top_contributor_ratio,
        latest_release_days_ago=latest.days_ago if latest else None,
    )


def _format_hours(hours: float | None) -> str:
    if hours is None:
        return "N/A"
    if hours < 48:
        return f"{hours:.1f} hours"
    return f"{hours / 24:.1f} days"


def display_results(metrics: RepositoryMetrics):
    """Display the analysis summary."""
    interpretation = get_health_score_interpretation(metrics.health_score)
    color = interpretation.color

    console.print(f"\n[bold cyan]{metrics.full_name}[/bold cyan]")
    if metrics.description:
        console.print(f"[dim]{metrics.description}[/dim]")
    console.print(
        f"\nHealth score: [bold {color}]{metrics.health_score}/100 "
        f"({interpretation.label})[/bold {color}]"
    )
    console.print(f"[dim]{interpretation.description}[/dim]\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    latest = metrics.latest_release
    rows = [
        ("Stars", f"{metrics.stars:,}"),
        ("Forks", f"{metrics.forks:,}"),
        ("Watchers", f"{metrics.watchers:,}"),
        ("License", metrics.license or "None"),
        ("Open / closed issues", f"{metrics.open_issues_count:,} / {metrics.closed_issues_count:,}"),
        ("Median issue response", _format_hours(metrics.median_issue_response_time)),
        ("Commits (last 90 days)", f"{metrics.total_commits_last_90_days:,}"),
        ("Top contributor share", f"{metrics.top_contributor_ratio:.1f}%"),
        ("Last commit", metrics.last_commit_date),
        ("Open pull requests", f"{metrics.open_pull_requests:,}"),
        ("PR merge rate", f"{metrics.pr_merge_rate:.1f}%"),
        ("Stars (last 30 days)", f"{metrics.recent_star_growth:,}"),
        (
            "Code changes (12 weeks)",
            f"+{metrics.code_additions:,} / -{metrics.code_deletions:,}",
        ),
        ("Releases (total / 90 days)", f"{metrics.total_releases} / {metrics.releases_last_90_days}"),
        ("Latest release", f"{latest.tag} ({latest.days_ago}d ago)" if latest else "None"),
        ("Total downloads", f"{metrics.total_downloads:,}"),
    ]
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)

    if metrics.languages:
        total_bytes = sum(metrics.languages.values()) or 1
        top_languages = sorted(
            metrics.languages.items(), key=lambda item: item[1], reverse=True
        )[:5]
        summary = ", ".join(
            f"{language} {size / total_bytes * 100:.1f}%"
            for language, size in top_languages
        )
        console.print(f"\nLanguages: {summary}")


def display_breakdown(metrics: RepositoryMetrics):
    """Display the health score sub-scores."""
    table = Table(
        title="Health Score Breakdown", show_header=True, header_style="bold magenta"
    )
    table.add_column("Metric", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Risk")
    table.add_column("Details")

    for metric in compute_health_breakdown(_health_signals(metrics)):
        risk_color = RISK_COLORS.get(metric.risk, "white")
        table.add_row(
            metric.name,
            f"{metric.score}/{metric.max_score}",
            f"[{risk_color}]{metric.risk}[/{risk_color}]",
            metric.message,
        )
    console.print(table)


def display_releases(metrics: RepositoryMetrics, limit: int, show_assets: bool):
    """Display per-release download statistics."""
    console.print(f"\n[bold cyan]{metrics.full_name}[/bold cyan] releases")
    console.print(
        f"  Stable releases: {metrics.total_releases} "
        f"({metrics.releases_last_90_days} in the last 90 days)"
    )
    console.print(f"  Total downloads: {metrics.total_downloads:,}")
    console.print(
        f"  Average downloads per release: {metrics.average_downloads_per_release:,}"
    )

    if not metrics.releases:
        console.print("\nNo releases published.")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tag", style="cyan")
    table.add_column("Name")
    table.add_column("Published")
    table.add_column("Age", justify="right")
    table.add_column("Downloads", justify="right")
    table.add_column("Assets", justify="right")

    for release in metrics.releases[:limit]:
        tag = release.tag
        if release.is_prerelease:
            tag += " [yellow](pre)[/yellow]"
        table.add_row(
            tag,
            release.name,
            release.published_at[:10],
            f"{release.days_ago}d",
            f"{release.total_downloads:,}",
            str(release.assets_count),
        )
    console.print(table)

    if show_assets:
        for release in metrics.releases[:limit]:
            if not release.assets:
                continue
            console.print(f"\n[bold]{release.tag}[/bold]")
            for asset in release.assets:
                console.print(
                    f"  {asset.name} ({asset.size / 1024 / 1024:.1f} MB): "
                    f"{asset.downloads:,} downloads"
                )

    if len(metrics.releases) > limit:
        console.print(
            f"\n[dim]Showing {limit} of {len(metrics.releases)} releases.[/dim]"
        )


# --- Commands ---


@app.command()
def analyze(
    target: str = typer.Argument(
        ..., help="Repository as 'owner/repo' or a GitHub URL."
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="GitHub token (default: GITHUB_TOKEN environment variable).",
    ),
    output_json: bool = typer.Option(
        False, "--json", help="Print the metrics as JSON."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show the health score breakdown."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Ignore a cached analysis and fetch fresh data."
    ),
    cache_dir: Path | None = typer.Option(
        None, "--cache-dir", help="Cache directory (default: ~/.cache/repo-vitals)."
    ),
    cache_ttl: int | None = typer.Option(
        None, "--cache-ttl", help="Seconds a cached analysis stays valid."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", help="Disable SSL certificate verification."
    ),
):
    """Analyze the health of a GitHub repository."""
    _apply_options(token, insecure, cache_dir, cache_ttl)
    owner, repo = _resolve_target(target)

    metrics = load_metrics(
        owner, repo, use_cache=not no_cache, show_progress=not output_json
    )

    if output_json:
        typer.echo(json.dumps(metrics_to_dict(metrics), indent=2))
        return

    display_results(metrics)
    if verbose:
        console.print()
        display_breakdown(metrics)


@app.command()
def releases(
    target: str = typer.Argument(
        ..., help="Repository as 'owner/repo' or a GitHub URL."
    ),
    limit: int = typer.Option(
        20, "--limit", "-n", min=1, help="Maximum number of releases to list."
    ),
    assets: bool = typer.Option(
        False, "--assets", "-a", help="List the assets of each release."
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="GitHub token (default: GITHUB_TOKEN environment variable).",
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Ignore a cached analysis and fetch fresh data."
    ),
    cache_dir: Path | None = typer.Option(
        None, "--cache-dir", help="Cache directory (default: ~/.cache/repo-vitals)."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", help="Disable SSL certificate verification."
    ),
):
    """Show release and download statistics of a repository."""
    _apply_options(token, insecure, cache_dir, None)
    owner, repo = _resolve_target(target)

    metrics = load_metrics(owner, repo, use_cache=not no_cache)
    display_releases(metrics, limit, assets)


@app.command("clear-cache")
def clear_cache_command(
    cache_dir: Path | None = typer.Option(
        None, "--cache-dir", help="Cache directory (default: ~/.cache/repo-vitals)."
    ),
):
    """Remove the cached analysis."""
    if cache_dir:
        set_cache_dir(cache_dir)
    cleared = clear_cache()
    console.print(f"[green]✨ Cleared {cleared} cache file(s).[/green]")


@app.command("cache-stats")
def cache_stats(
    cache_dir: Path | None = typer.Option(
        None, "--cache-dir", help="Cache directory (default: ~/.cache/repo-vitals)."
    ),
):
    """Display information about the cached analysis."""
    if cache_dir:
        set_cache_dir(cache_dir)
    stats = get_cache_stats()

    if not stats["exists"]:
        console.print(f"[yellow]No cached analysis in {stats['cache_dir']}[/yellow]")
        return

    status = "[green]valid[/green]" if stats["is_valid"] else "[yellow]expired[/yellow]"
    console.print("[bold cyan]Cache Statistics[/bold cyan]")
    console.print(f"  Directory: {stats['cache_dir']}")
    console.print(f"  Repository: {stats['repository']}")
    console.print(f"  Fetched at: {stats['fetched_at']}")
    console.print(f"  Status: {status}")


@app.command("rate-limit")
def rate_limit(
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="GitHub token (default: GITHUB_TOKEN environment variable).",
    ),
    insecure: bool = typer.Option(
        False, "--insecure", help="Disable SSL certificate verification."
    ),
):
    """Show the remaining GitHub API quota."""
    _apply_options(token, insecure, None, None)
    try:
        limits = fetch_rate_limit()
    except (httpx.HTTPError, GitHubAPIError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None
    finally:
        close_http_client()

    color = "green" if limits.remaining > limits.limit // 10 else "yellow"
    console.print(
        f"GitHub API: [{color}]{limits.remaining}/{limits.limit}[/{color}] requests remaining"
    )
    console.print(f"[dim]Resets at {limits.reset_at.isoformat()}[/dim]")


if __name__ == "__main__":
    app()
