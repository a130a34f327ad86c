"""
GitHub REST API fetchers for Repo Vitals.

Every consumed endpoint response is validated into a pydantic model at this
boundary, so the rest of the pipeline never handles raw JSON payloads.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, NamedTuple

import httpx
from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)
from rich.console import Console

from repo_vitals.config import get_api_url
from repo_vitals.http_client import fetch_with_retry, get_headers

console = Console(stderr=True)

PER_PAGE = 100
ISSUES_LIMIT = 500
COMMITS_LIMIT = 1000
RELEASES_LIMIT = 1000

STAR_MEDIA_TYPE = "application/vnd.github.star+json"
STAR_GROWTH_WINDOW_DAYS = 30
STAR_GROWTH_RETRIES = 2

CODE_FREQUENCY_ATTEMPTS = 3
CODE_FREQUENCY_WAIT_SECONDS = 2
CODE_FREQUENCY_WEEKS = 12

ProgressCallback = Callable[[int, int], None]


# --- Errors ---


class GitHubAPIError(Exception):
    """Raised when an endpoint answers with an unexpected status code."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RepositoryFetchError(Exception):
    """Raised when the repository itself cannot be resolved."""

    def __init__(self, owner: str, repo: str, message: str):
        super().__init__(message)
        self.owner = owner
        self.repo = repo


class RepositoryNotFoundError(RepositoryFetchError):
    """The repository does not exist (HTTP 404)."""


class RepositoryAccessError(RepositoryFetchError):
    """The repository is private or the rate limit was hit (HTTP 403)."""


def format_github_datetime(value: datetime) -> str:
    """Render a datetime the way GitHub does (UTC, second precision, Z suffix)."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# --- Payload schemas ---


class GitHubUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    type: str | None = None


class GitHubLicense(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None


class GitHubRepository(BaseModel):
    """The /repos/{owner}/{repo} payload."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    owner: GitHubUser
    description: str | None = None
    stargazers_count: int = Field(..., ge=0)
    forks_count: int = Field(..., ge=0)
    open_issues_count: int = Field(..., ge=0)
    subscribers_count: int = Field(default=0, ge=0)
    updated_at: AwareDatetime
    license: GitHubLicense | None = None

    @property
    def owner_login(self) -> str:
        return self.owner.login

    @property
    def license_name(self) -> str | None:
        return self.license.name if self.license else None


class GitHubIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int = Field(..., ge=0)
    state: str
    created_at: AwareDatetime
    comments: int = Field(default=0, ge=0)


class GitHubIssueComment(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: GitHubUser | None = None
    created_at: AwareDatetime

    @property
    def user_login(self) -> str | None:
        return self.user.login if self.user else None

    @property
    def user_type(self) -> str | None:
        return self.user.type if self.user else None


class GitCommitAuthor(BaseModel):
    """Author as recorded in git, independent of any GitHub account."""

    model_config = ConfigDict(frozen=True)

    email: str | None = None
    date: AwareDatetime | None = None


class GitCommitDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: GitCommitAuthor | None = None


class GitHubCommit(BaseModel):
    model_config = ConfigDict(frozen=True)

    sha: str
    commit: GitCommitDetail
    # GitHub account linked to the commit, None for unknown emails
    author: GitHubUser | None = None

    @property
    def author_login(self) -> str | None:
        return self.author.login if self.author else None

    @property
    def author_email(self) -> str | None:
        git_author = self.commit.author
        return git_author.email if git_author else None

    @property
    def author_date(self) -> datetime | None:
        git_author = self.commit.author
        return git_author.date if git_author else None


class GitHubReleaseAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    size: int = Field(default=0, ge=0)
    download_count: int = Field(default=0, ge=0)


class GitHubRelease(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag_name: str
    name: str | None = None
    published_at: AwareDatetime | None = None
    created_at: AwareDatetime
    prerelease: bool = False
    draft: bool = False
    assets: list[GitHubReleaseAsset] = Field(default_factory=list)

    @property
    def published(self) -> datetime:
        """Publish time; drafts have none, so creation time stands in."""
        return self.published_at or self.created_at


class GitHubStargazer(BaseModel):
    model_config = ConfigDict(frozen=True)

    starred_at: AwareDatetime


class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_count: int = Field(..., ge=0)


class RateLimitResource(BaseModel):
    model_config = ConfigDict(frozen=True)

    limit: int = Field(..., ge=0)
    remaining: int = Field(..., ge=0)
    reset: datetime


class RateLimitResources(BaseModel):
    model_config = ConfigDict(frozen=True)

    core: RateLimitResource


class RateLimitPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    resources: RateLimitResources


PAGE_ADAPTER = TypeAdapter(list[dict[str, Any]])
ISSUES_ADAPTER = TypeAdapter(list[GitHubIssue])
COMMENTS_ADAPTER = TypeAdapter(list[GitHubIssueComment])
COMMITS_ADAPTER = TypeAdapter(list[GitHubCommit])
RELEASES_ADAPTER = TypeAdapter(list[GitHubRelease])
STARGAZERS_ADAPTER = TypeAdapter(list[GitHubStargazer])
LANGUAGES_ADAPTER = TypeAdapter(dict[str, int])
# [week timestamp, additions, deletions (negative)]
CODE_FREQUENCY_ADAPTER = TypeAdapter(list[tuple[int, int, int]])


# --- Results ---


class PRStats(NamedTuple):
    merged: int
    closed: int
    merge_rate: float  # percentage (0-100)


class StarGrowth(NamedTuple):
    stars_per_month: int
    recent_growth: int


class CodeFrequency(NamedTuple):
    additions: int
    deletions: int
    total_changes: int


class RateLimit(NamedTuple):
    limit: int
    remaining: int
    reset_at: datetime


# --- Helpers ---


def _repo_url(owner: str, repo: str, path: str = "") -> str:
    return f"{get_api_url()}/repos/{owner}/{repo}{path}"


def _collect_pages(
    url: str,
    resource: str,
    limit: int,
    keep: Callable[[dict[str, Any]], bool] | None = None,
    params: dict[str, str | int] | None = None,
    per_page: int = PER_PAGE,
    on_progress: ProgressCallback | None = None,
    stop_on_not_found: bool = False,
    stop_on_server_error: bool = False,
) -> list[dict[str, Any]]:
    """
    Page through a list endpoint until the limit or a short page is reached.

    Args:
        url: Endpoint URL.
        resource: Resource label for messages.
        limit: Stop once this many kept items have been accumulated.
        keep: Optional filter applied to each raw item.
        params: Extra query parameters.
        per_page: Page size; a shorter page ends pagination.
        on_progress: Called with (collected, limit) after each page.
        stop_on_not_found: Return collected items on HTTP 404.
        stop_on_server_error: Return collected items on HTTP 5xx.

    Raises:
        GitHubAPIError: On any other non-2xx response.
        ValidationError: If a page is not a list of objects.
    """
    items: list[dict[str, Any]] = []
    page = 1

    while len(items) < limit:
        query = {**(params or {}), "per_page": per_page, "page": page}
        response = fetch_with_retry(url, params=query)

        if not response.is_success:
            if response.status_code == 404 and stop_on_not_found:
                console.print(
                    f"[yellow]⚠️  {resource.capitalize()} endpoint returned 404, "
                    f"returning {len(items)} collected {resource}[/yellow]"
                )
                break
            if response.status_code >= 500 and stop_on_server_error:
                console.print(
                    f"[yellow]⚠️  Server error {response.status_code}, "
                    f"stopping {resource} fetch[/yellow]"
                )
                break
            raise GitHubAPIError(
                f"Failed to fetch {resource}: {response.status_code} {response.reason_phrase}",
                response.status_code,
            )

        data = PAGE_ADAPTER.validate_python(response.json())
        if not data:
            break

        items.extend(item for item in data if keep is None or keep(item))

        if on_progress:
            on_progress(len(items), limit)

        if len(data) < per_page:
            break
        page += 1

    return items


def _search_total_count(query: str) -> int:
    """Run a search query and return only its total_count."""
    response = fetch_with_retry(f"{get_api_url()}/search/issues", params={"q": query})
    if not response.is_success:
        raise GitHubAPIError(
            f"Search '{query}' failed: {response.status_code}", response.status_code
        )
    return SearchResult.model_validate(response.json()).total_count


# --- Fetchers ---


def fetch_repository(owner: str, repo: str) -> GitHubRepository:
    """
    Fetch repository information.

    Raises:
        RepositoryNotFoundError: If the repository does not exist.
        RepositoryAccessError: If access is denied or rate limited.
        RepositoryFetchError: On any other unexpected status.
        ValidationError: If the payload is malformed.
    """
    response = fetch_with_retry(_repo_url(owner, repo))

    if not response.is_success:
        if response.status_code == 404:
            raise RepositoryNotFoundError(
                owner,
                repo,
                f'Repository "{owner}/{repo}" not found. '
                "Please check the repository name and make sure it exists.",
            )
        if response.status_code == 403:
            raise RepositoryAccessError(
                owner,
                repo,
                f'Access denied to repository "{owner}/{repo}". '
                "The repository might be private or you've hit the rate limit.",
            )
        raise RepositoryFetchError(
            owner,
            repo,
            f'Failed to fetch repository "{owner}/{repo}": '
            f"{response.status_code} {response.reason_phrase}",
        )

    return GitHubRepository.model_validate(response.json())


def fetch_issues(
    owner: str,
    repo: str,
    state: str = "all",
    per_page: int = PER_PAGE,
    on_progress: ProgressCallback | None = None,
) -> list[GitHubIssue]:
    """
    Fetch up to 500 issues, excluding pull requests.

    Returns what was collected so far if the issues endpoint answers 404
    (issues disabled).
    """
    raw_issues = _collect_pages(
        _repo_url(owner, repo, "/issues"),
        "issues",
        ISSUES_LIMIT,
        keep=lambda item: "pull_request" not in item,
        params={"state": state},
        per_page=per_page,
        on_progress=on_progress,
        stop_on_not_found=True,
    )
    return ISSUES_ADAPTER.validate_python(raw_issues)


def fetch_issue_comments(
    owner: str, repo: str, issue_number: int
) -> list[GitHubIssueComment]:
    """Fetch the first page of comments on an issue; empty on server errors."""
    response = fetch_with_retry(
        _repo_url(owner, repo, f"/issues/{issue_number}/comments")
    )

    if not response.is_success:
        if response.status_code >= 500:
            console.print(
                f"[yellow]⚠️  Server error {response.status_code} "
                f"for issue #{issue_number} comments[/yellow]"
            )
            return []
        raise GitHubAPIError(
            f"Failed to fetch issue comments: {response.status_code}",
            response.status_code,
        )

    return COMMENTS_ADAPTER.validate_python(response.json())


def fetch_commits(
    owner: str,
    repo: str,
    days: int = 90,
    now: datetime | None = None,
    on_progress: ProgressCallback | None = None,
) -> list[GitHubCommit]:
    """Fetch up to 1000 commits from the `days` days before `now`, newest first."""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=days)
    raw_commits = _collect_pages(
        _repo_url(owner, repo, "/commits"),
        "commits",
        COMMITS_LIMIT,
        params={"since": format_github_datetime(since)},
        on_progress=on_progress,
        stop_on_server_error=True,
    )
    return COMMITS_ADAPTER.validate_python(raw_commits)


def fetch_releases(
    owner: str,
    repo: str,
    limit: int = RELEASES_LIMIT,
    on_progress: ProgressCallback | None = None,
) -> list[GitHubRelease]:
    """Fetch non-draft releases with their assets, newest first."""
    raw_releases = _collect_pages(
        _repo_url(owner, repo, "/releases"),
        "releases",
        limit,
        keep=lambda item: not item.get("draft"),
        on_progress=on_progress,
        stop_on_server_error=True,
    )
    return RELEASES_ADAPTER.validate_python(raw_releases)


def fetch_languages(owner: str, repo: str) -> dict[str, int]:
    """Fetch the language -> byte count breakdown."""
    response = fetch_with_retry(_repo_url(owner, repo, "/languages"))
    if not response.is_success:
        raise GitHubAPIError(
            f"Failed to fetch languages: {response.status_code}", response.status_code
        )
    return LANGUAGES_ADAPTER.validate_python(response.json())


def fetch_open_pull_requests_count(owner: str, repo: str) -> int:
    """Count open pull requests via the search API."""
    return _search_total_count(f"repo:{owner}/{repo} type:pr is:open")


def fetch_closed_issues_count(owner: str, repo: str) -> int:
    """Count closed issues (pull requests excluded) via the search API."""
    return _search_total_count(f"repo:{owner}/{repo} type:issue is:closed")


def fetch_pr_stats(owner: str, repo: str) -> PRStats:
    """
    Fetch merged vs. closed-unmerged pull request counts.

    Each query failing is treated as a zero count.
    """
    counts = []
    for qualifiers in ("is:merged", "is:closed is:unmerged"):
        try:
            counts.append(
                _search_total_count(f"repo:{owner}/{repo} type:pr {qualifiers}")
            )
        except (httpx.HTTPError, GitHubAPIError, ValidationError, ValueError) as e:
            console.print(
                f"[yellow]⚠️  PR search '{qualifiers}' failed: {e}[/yellow]"
            )
            counts.append(0)

    merged, closed = counts
    total = merged + closed
    merge_rate = (merged / total) * 100 if total > 0 else 0.0
    return PRStats(merged=merged, closed=closed, merge_rate=merge_rate)


def _fetch_stargazer_page(
    url: str,
    headers: dict[str, str],
    params: dict[str, str | int] | None = None,
) -> tuple[httpx.Response, list[GitHubStargazer]]:
    response = fetch_with_retry(
        url, retries=STAR_GROWTH_RETRIES, headers=headers, params=params
    )
    if not response.is_success:
        raise GitHubAPIError(
            f"Failed to fetch stargazers: {response.status_code}",
            response.status_code,
        )
    return response, STARGAZERS_ADAPTER.validate_python(response.json())


def fetch_star_growth(
    owner: str, repo: str, now: datetime | None = None
) -> StarGrowth:
    """
    Count stars received in the last 30 days among the 100 most recent stargazers.

    Stargazers are listed oldest first, so with more than one page the last
    page is read, topped up from the page before it when it is short. The
    trailing 30-day count is reported as both the monthly rate and the
    recent growth.
    """
    now = now or datetime.now(timezone.utc)
    headers = get_headers(accept=STAR_MEDIA_TYPE)

    try:
        response, stargazers = _fetch_stargazer_page(
            _repo_url(owner, repo, "/stargazers"),
            headers,
            params={"per_page": PER_PAGE},
        )

        last_page = response.links.get("last", {}).get("url")
        if last_page:
            response, stargazers = _fetch_stargazer_page(last_page, headers)
            previous_page = response.links.get("prev", {}).get("url")
            if len(stargazers) < PER_PAGE and previous_page:
                _, previous = _fetch_stargazer_page(previous_page, headers)
                stargazers = (previous + stargazers)[-PER_PAGE:]
    except (httpx.HTTPError, GitHubAPIError, ValidationError, ValueError) as e:
        console.print(f"[yellow]⚠️  Star growth unavailable: {e}[/yellow]")
        return StarGrowth(0, 0)

    cutoff = now - timedelta(days=STAR_GROWTH_WINDOW_DAYS)
    recent = sum(1 for stargazer in stargazers if stargazer.starred_at > cutoff)
    return StarGrowth(stars_per_month=recent, recent_growth=recent)


def fetch_code_frequency(owner: str, repo: str) -> CodeFrequency:
    """
    Sum additions and deletions over the last 12 weeks.

    GitHub answers 202 while the statistics are being computed; the request
    is repeated a few times before giving up with zeros.
    """
    empty = CodeFrequency(0, 0, 0)
    url = _repo_url(owner, repo, "/stats/code_frequency")

    try:
        for attempt in range(1, CODE_FREQUENCY_ATTEMPTS + 1):
            response = fetch_with_retry(url)
            if response.status_code != 202:
                break
            if attempt < CODE_FREQUENCY_ATTEMPTS:
                console.print(
                    f"[dim]⏳ Code stats computing, waiting {CODE_FREQUENCY_WAIT_SECONDS}s... "
                    f"(attempt {attempt}/{CODE_FREQUENCY_ATTEMPTS})[/dim]"
                )
                time.sleep(CODE_FREQUENCY_WAIT_SECONDS)

        if response.status_code in (202, 204) or not response.is_success:
            console.print("[yellow]⚠️  Code frequency stats not available yet[/yellow]")
            return empty

        weeks = CODE_FREQUENCY_ADAPTER.validate_python(response.json())
    except (httpx.HTTPError, ValidationError, ValueError) as e:
        console.print(f"[yellow]⚠️  Code frequency unavailable: {e}[/yellow]")
        return empty

    recent_weeks = weeks[-CODE_FREQUENCY_WEEKS:]
    additions = sum(week_additions for _, week_additions, _ in recent_weeks)
    deletions = sum(abs(week_deletions) for _, _, week_deletions in recent_weeks)
    return CodeFrequency(
        additions=additions,
        deletions=deletions,
        total_changes=additions + deletions,
    )


def fetch_rate_limit() -> RateLimit:
    """Fetch the core REST API quota for the configured credential."""
    response = fetch_with_retry(f"{get_api_url()}/rate_limit", retries=0)
    if not response.is_success:
        raise GitHubAPIError(
            f"Failed to check rate limit: {response.status_code}",
            response.status_code,
        )

    core = RateLimitPayload.model_validate(response.json()).resources.core
    return RateLimit(limit=core.limit, remaining=core.remaining, reset_at=core.reset)
