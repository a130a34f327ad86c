"""
Repo Vitals: health scoring for GitHub repositories.
"""

from repo_vitals.core import AnalysisError, analyze_repository
from repo_vitals.metrics.health import get_health_score_interpretation
from repo_vitals.models import AnalysisStatus, ReleaseStats, RepositoryMetrics

__version__ = "0.1.0"

__all__ = [
    "AnalysisError",
    "AnalysisStatus",
    "ReleaseStats",
    "RepositoryMetrics",
    "analyze_repository",
    "get_health_score_interpretation",
]
