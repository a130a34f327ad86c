"""
Composite health score.

Five sub-scores worth 20 points each are summed into a 0-100 score:

- Response Time: faster first responses to issues are better
- Issue Resolution: more closed vs. open issues is better
- Commit Activity: more commits in the last 90 days is better
- Bus Factor: a lower top contributor share is better
- Release Activity: a recent stable release indicates maintenance
"""

from typing import NamedTuple

from repo_vitals.metrics.base import Metric, round_half_up

SUB_SCORE_MAX = 20


class HealthSignals(NamedTuple):
    """The inputs the health score is computed from."""

    median_issue_response_time: float | None  # hours
    open_issues_count: int
    closed_issues_count: int
    total_commits_last_90_days: int
    top_contributor_ratio: float  # percentage (0-100)
    latest_release_days_ago: int | None


class HealthInterpretation(NamedTuple):
    label: str
    description: str
    color: str


def _risk_for(score: int) -> str:
    if score >= 16:
        return "None"
    if score >= 12:
        return "Low"
    if score >= 8:
        return "Medium"
    if score >= 4:
        return "High"
    return "Critical"


def score_response_time(median_hours: float | None) -> Metric:
    if median_hours is None:
        return Metric(
            "Response Time",
            10,
            SUB_SCORE_MAX,
            "Note: No issue responses to sample.",
            "None",
        )

    if median_hours < 24:
        score = 20
    elif median_hours < 48:
        score = 16
    elif median_hours < 72:
        score = 12
    elif median_hours < 168:
        score = 8
    else:
        score = 4

    return Metric(
        "Response Time",
        score,
        SUB_SCORE_MAX,
        f"Median first response after {median_hours:.1f} hours.",
        _risk_for(score),
    )


def score_issue_resolution(open_issues: int, closed_issues: int) -> Metric:
    total_issues = open_issues + closed_issues
    if total_issues <= 0:
        return Metric(
            "Issue Resolution",
            10,
            SUB_SCORE_MAX,
            "Note: No issues to analyze.",
            "None",
        )

    closed_ratio = closed_issues / total_issues
    score = round_half_up(closed_ratio * SUB_SCORE_MAX)
    return Metric(
        "Issue Resolution",
        score,
        SUB_SCORE_MAX,
        f"{closed_ratio * 100:.0f}% of issues closed ({closed_issues}/{total_issues}).",
        _risk_for(score),
    )


def score_commit_activity(commits_last_90_days: int) -> Metric:
    if commits_last_90_days >= 100:
        score = 20
    elif commits_last_90_days >= 50:
        score = 16
    elif commits_last_90_days >= 20:
        score = 12
    elif commits_last_90_days >= 10:
        score = 8
    else:
        score = round_half_up((commits_last_90_days / 10) * 8)

    return Metric(
        "Commit Activity",
        score,
        SUB_SCORE_MAX,
        f"{commits_last_90_days} commit(s) in the last 90 days.",
        _risk_for(score),
    )


def score_bus_factor(top_contributor_ratio: float) -> Metric:
    if top_contributor_ratio < 40:
        score = 20
    elif top_contributor_ratio < 50:
        score = 16
    elif top_contributor_ratio < 60:
        score = 12
    elif top_contributor_ratio < 70:
        score = 8
    else:
        score = 4

    return Metric(
        "Bus Factor",
        score,
        SUB_SCORE_MAX,
        f"Top contributor made {top_contributor_ratio:.0f}% of recent commits.",
        _risk_for(score),
    )


def score_release_activity(latest_release_days_ago: int | None) -> Metric:
    if latest_release_days_ago is None:
        return Metric(
            "Release Activity",
            4,
            SUB_SCORE_MAX,
            "No stable release published.",
            "High",
        )

    if latest_release_days_ago <= 30:
        score = 20
    elif latest_release_days_ago <= 60:
        score = 16
    elif latest_release_days_ago <= 90:
        score = 12
    elif latest_release_days_ago <= 180:
        score = 8
    else:
        score = 4

    return Metric(
        "Release Activity",
        score,
        SUB_SCORE_MAX,
        f"Latest stable release {latest_release_days_ago} day(s) ago.",
        _risk_for(score),
    )


def compute_health_breakdown(signals: HealthSignals) -> list[Metric]:
    """Return the five sub-scores that make up the health score."""
    return [
        score_response_time(signals.median_issue_response_time),
        score_issue_resolution(signals.open_issues_count, signals.closed_issues_count),
        score_commit_activity(signals.total_commits_last_90_days),
        score_bus_factor(signals.top_contributor_ratio),
        score_release_activity(signals.latest_release_days_ago),
    ]


def calculate_health_score(signals: HealthSignals) -> int:
    """Overall health score (0-100)."""
    total = sum(metric.score for metric in compute_health_breakdown(signals))
    return min(100, max(0, total))


def get_health_score_interpretation(score: int) -> HealthInterpretation:
    """Map a health score to a label, description and display color."""
    if score >= 80:
        return HealthInterpretation(
            "Excellent",
            "This project is very healthy with active maintenance and community engagement.",
            "green",
        )
    if score >= 60:
        return HealthInterpretation(
            "Good",
            "This project is generally well-maintained with room for improvement.",
            "blue",
        )
    if score >= 40:
        return HealthInterpretation(
            "Fair",
            "This project shows some signs of maintenance but may have concerns.",
            "yellow",
        )
    return HealthInterpretation(
        "Needs Attention",
        "This project may have maintenance or community engagement concerns.",
        "red",
    )
