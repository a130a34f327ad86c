"""
Tests for the top contributor ratio metric.
"""

import pytest

from repo_vitals.github import GitHubCommit
from repo_vitals.metrics.bus_factor import (
    calculate_top_contributor_ratio,
    commit_author_key,
)


def _commit(login: str | None = None, email: str | None = None) -> GitHubCommit:
    return GitHubCommit(
        sha="0" * 40,
        commit={"author": {"email": email, "date": "2026-10-01T00:00:00Z"}},
        author={"login": login} if login else None,
    )


class TestCommitAuthorKey:
    """Test how the contributor of a commit is identified."""

    def test_prefers_login(self):
        assert commit_author_key(_commit("alice", "a@example.com")) == "alice"

    def test_falls_back_to_email(self):
        """Commits without a linked GitHub account are keyed by email."""
        assert commit_author_key(_commit(None, "a@example.com")) == "a@example.com"

    def test_unknown_author(self):
        assert commit_author_key(_commit()) == "unknown"


class TestTopContributorRatio:
    """Test the calculate_top_contributor_ratio metric function."""

    def test_no_commits(self):
        """No commits yields a ratio of 0."""
        assert calculate_top_contributor_ratio([]) == 0

    def test_single_author(self):
        """A single author owns every commit."""
        commits = [_commit("alice") for _ in range(5)]
        assert calculate_top_contributor_ratio(commits) == 100

    def test_mixed_authors(self):
        commits = [_commit("alice")] * 18 + [_commit("bob")] * 7 + [_commit("carol")] * 5
        assert calculate_top_contributor_ratio(commits) == pytest.approx(60.0)

    def test_email_identities_are_counted(self):
        """Commits keyed by email compete with login-keyed ones."""
        commits = [
            _commit(None, "dev@example.com"),
            _commit(None, "dev@example.com"),
            _commit(None, "dev@example.com"),
            _commit("alice"),
        ]
        assert calculate_top_contributor_ratio(commits) == pytest.approx(75.0)

    def test_ratio_is_bounded(self):
        commits = [_commit(f"user{i}") for i in range(10)]
        ratio = calculate_top_contributor_ratio(commits)
        assert 0 <= ratio <= 100
        assert ratio == pytest.approx(10.0)
