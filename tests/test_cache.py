"""
Tests for the last-analysis cache.
"""

from datetime import datetime, timedelta, timezone

from repo_vitals.cache import (
    CACHE_FILENAME,
    clear_cache,
    get_cache_stats,
    is_cache_valid,
    load_last_analysis,
    save_last_analysis,
)
from repo_vitals.config import get_cache_dir, set_cache_ttl


class TestIsCacheValid:
    def test_fresh_entry(self):
        now = datetime.now(timezone.utc)
        entry = {"fetched_at": now.isoformat(), "ttl_seconds": 3600}
        assert is_cache_valid(entry, now=now + timedelta(minutes=59))

    def test_expired_entry(self):
        now = datetime.now(timezone.utc)
        entry = {"fetched_at": now.isoformat(), "ttl_seconds": 3600}
        assert not is_cache_valid(entry, now=now + timedelta(hours=1))

    def test_naive_timestamp_is_utc(self):
        entry = {"fetched_at": "2026-10-18T12:00:00", "ttl_seconds": 60}
        now = datetime(2026, 10, 18, 12, 0, 30, tzinfo=timezone.utc)
        assert is_cache_valid(entry, now=now)

    def test_missing_or_invalid_timestamp(self):
        assert not is_cache_valid({})
        assert not is_cache_valid({"fetched_at": "yesterday"})

    def test_configured_ttl_caps_stored_ttl(self):
        set_cache_ttl(60)
        now = datetime.now(timezone.utc)
        entry = {"fetched_at": now.isoformat(), "ttl_seconds": 3600}
        assert is_cache_valid(entry, now=now + timedelta(seconds=30))
        assert not is_cache_valid(entry, now=now + timedelta(seconds=120))

    def test_longer_configured_ttl_keeps_stored_ttl(self):
        set_cache_ttl(7200)
        now = datetime.now(timezone.utc)
        entry = {"fetched_at": now.isoformat(), "ttl_seconds": 60}
        assert not is_cache_valid(entry, now=now + timedelta(seconds=120))


class TestLastAnalysis:
    """Test saving and loading the cached analysis."""

    def test_save_and_load(self, sample_metrics):
        save_last_analysis(sample_metrics)

        assert (get_cache_dir() / CACHE_FILENAME).exists()
        assert load_last_analysis("octo", "widgets") == sample_metrics

    def test_repository_match_ignores_case(self, sample_metrics):
        save_last_analysis(sample_metrics, owner="Octo", repo="Widgets")
        assert load_last_analysis("octo", "WIDGETS") == sample_metrics

    def test_other_repository_is_a_miss(self, sample_metrics):
        save_last_analysis(sample_metrics)
        assert load_last_analysis("octo", "gadgets") is None

    def test_new_analysis_replaces_previous(self, metrics_factory):
        save_last_analysis(metrics_factory())
        save_last_analysis(metrics_factory(name="gadgets", full_name="octo/gadgets"))

        assert load_last_analysis("octo", "widgets") is None
        assert load_last_analysis("octo", "gadgets").full_name == "octo/gadgets"

    def test_expired_analysis_is_a_miss(self, sample_metrics):
        save_last_analysis(sample_metrics)
        later = datetime.now(timezone.utc) + timedelta(hours=2)
        assert load_last_analysis("octo", "widgets", now=later) is None

    def test_ttl_is_stored_with_the_entry(self, sample_metrics):
        set_cache_ttl(10)
        save_last_analysis(sample_metrics)
        later = datetime.now(timezone.utc) + timedelta(seconds=30)
        assert load_last_analysis("octo", "widgets", now=later) is None

    def test_ttl_lowered_after_save(self, sample_metrics):
        save_last_analysis(sample_metrics)
        set_cache_ttl(60)
        later = datetime.now(timezone.utc) + timedelta(seconds=120)
        assert load_last_analysis("octo", "widgets", now=later) is None

    def test_missing_cache(self):
        assert load_last_analysis("octo", "widgets") is None

    def test_corrupted_cache_is_a_miss(self):
        cache_dir = get_cache_dir()
        cache_dir.mkdir(parents=True)
        (cache_dir / CACHE_FILENAME).write_bytes(b"not gzip at all")

        assert load_last_analysis("octo", "widgets") is None
        assert get_cache_stats()["exists"] is False

    def test_release_without_latest(self, metrics_factory):
        metrics = metrics_factory(releases=[], latest_release=None, total_releases=0)
        save_last_analysis(metrics)
        assert load_last_analysis("octo", "widgets").latest_release is None


class TestCacheMaintenance:
    def test_clear_cache(self, sample_metrics):
        save_last_analysis(sample_metrics)

        assert clear_cache() == 1
        assert clear_cache() == 0
        assert load_last_analysis("octo", "widgets") is None

    def test_cache_stats(self, sample_metrics):
        assert get_cache_stats() == {
            "cache_dir": str(get_cache_dir()),
            "exists": False,
        }

        save_last_analysis(sample_metrics)
        stats = get_cache_stats()

        assert stats["exists"] is True
        assert stats["repository"] == "octo/widgets"
        assert stats["is_valid"] is True
