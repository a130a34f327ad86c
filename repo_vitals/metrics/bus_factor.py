"""Top contributor ratio (bus factor) metric."""

from repo_vitals.github import GitHubCommit


def commit_author_key(commit: GitHubCommit) -> str:
    """Identify the contributor of a commit: GitHub login, else author email."""
    return commit.author_login or commit.author_email or "unknown"


def calculate_top_contributor_ratio(commits: list[GitHubCommit]) -> float:
    """
    Share of commits made by the single most active contributor.

    Returns:
        Percentage between 0 and 100; 0 when there are no commits.
    """
    if not commits:
        return 0.0

    author_counts: dict[str, int] = {}
    for commit in commits:
        author = commit_author_key(commit)
        author_counts[author] = author_counts.get(author, 0) + 1

    top_contributor_commits = max(author_counts.values())
    return (top_contributor_commits / len(commits)) * 100
