"""
Tests for the shared metric helpers.
"""

import pytest

from repo_vitals.metrics.base import Metric, calculate_median, round_half_up


class TestCalculateMedian:
    """Test the calculate_median helper."""

    def test_odd_length(self):
        """The middle value is returned for odd-length input."""
        assert calculate_median([3, 1, 2]) == 2

    def test_even_length_averages_middle_values(self):
        """Even-length input averages the two middle values."""
        assert calculate_median([1, 2, 3, 4]) == 2.5

    def test_empty_is_none(self):
        assert calculate_median([]) is None

    def test_single_value(self):
        assert calculate_median([7.25]) == 7.25

    def test_does_not_modify_input(self):
        values = [5, 1, 3]
        calculate_median(values)
        assert values == [5, 1, 3]


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (7.5, 8), (0.0, 0)],
    )
    def test_rounds_halves_up(self, value, expected):
        assert round_half_up(value) == expected


def test_metric_fields():
    metric = Metric("Bus Factor", 8, 20, "Top contributor made 60% of recent commits.", "Medium")
    assert metric.name == "Bus Factor"
    assert metric.score == 8
    assert metric.max_score == 20
    assert metric.risk == "Medium"
