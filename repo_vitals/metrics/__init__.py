"""
Derived metrics and the composite health score.
"""

from repo_vitals.metrics.base import Metric, calculate_median
from repo_vitals.metrics.bus_factor import calculate_top_contributor_ratio
from repo_vitals.metrics.health import (
    HealthInterpretation,
    HealthSignals,
    calculate_health_score,
    compute_health_breakdown,
    get_health_score_interpretation,
)
from repo_vitals.metrics.releases import ReleaseRollup, calculate_release_stats
from repo_vitals.metrics.response_time import calculate_median_issue_response_time

__all__ = [
    "HealthInterpretation",
    "HealthSignals",
    "Metric",
    "ReleaseRollup",
    "calculate_health_score",
    "calculate_median",
    "calculate_median_issue_response_time",
    "calculate_release_stats",
    "calculate_top_contributor_ratio",
    "compute_health_breakdown",
    "get_health_score_interpretation",
]
