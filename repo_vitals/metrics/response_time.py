"""Issue response time metric."""

import time

import httpx
from pydantic import ValidationError
from rich.console import Console

from repo_vitals.github import GitHubAPIError, GitHubIssue, fetch_issue_comments
from repo_vitals.metrics.base import calculate_median

console = Console(stderr=True)

RESPONSE_TIME_SAMPLE_SIZE = 5
COMMENT_FETCH_PAUSE_SECONDS = 0.2


def calculate_issue_response_time(
    owner: str, repo: str, issue: GitHubIssue
) -> float | None:
    """
    Hours from issue creation to the first comment by a human account.

    Comments from bots and apps (user type other than "User") are skipped.
    Returns None when there is no such comment or the comments cannot be
    fetched.
    """
    try:
        comments = fetch_issue_comments(owner, repo, issue.number)
    except (httpx.HTTPError, GitHubAPIError, ValidationError, ValueError) as e:
        console.print(
            f"[yellow]⚠️  Failed to calculate response time for issue #{issue.number}: {e}[/yellow]"
        )
        return None

    first_response = next(
        (comment for comment in comments if comment.user_type == "User"), None
    )
    if first_response is None:
        return None

    return (first_response.created_at - issue.created_at).total_seconds() / 3600


def select_response_time_sample(
    issues: list[GitHubIssue], size: int = RESPONSE_TIME_SAMPLE_SIZE
) -> list[GitHubIssue]:
    """Most recently created closed issues that have at least one comment."""
    candidates = [
        issue for issue in issues if issue.state == "closed" and issue.comments > 0
    ]
    candidates.sort(key=lambda issue: issue.created_at, reverse=True)
    return candidates[:size]


def calculate_median_issue_response_time(
    owner: str, repo: str, issues: list[GitHubIssue]
) -> float | None:
    """
    Median first-response time in hours over a small sample of closed issues.

    Only a handful of issues are sampled to keep the number of API calls low,
    with a short pause between comment fetches.
    """
    sample = select_response_time_sample(issues)
    if not sample:
        return None

    response_times: list[float] = []
    for index, issue in enumerate(sample):
        if index > 0:
            time.sleep(COMMENT_FETCH_PAUSE_SECONDS)
        response_time = calculate_issue_response_time(owner, repo, issue)
        if response_time is not None:
            response_times.append(response_time)

    return calculate_median(response_times)
