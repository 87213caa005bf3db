"""
Tests for the shared metric helpers.
"""

from datetime import datetime, timedelta, timezone

from repo_spark.metrics.base import (
    contains_keyword,
    duration_rating,
    format_duration,
    format_time_ago,
    health_status,
    percentage,
    round_half_up,
    score_rating,
)


class TestRounding:
    def test_halves_round_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(41.5) == 42

    def test_below_half_rounds_down(self):
        assert round_half_up(43.49) == 43

    def test_percentage_guards_zero_total(self):
        assert percentage(0, 0) == 0
        assert percentage(1, 3) == 33
        assert percentage(2, 3) == 67


class TestLadders:
    def test_score_rating(self):
        assert score_rating(90) == "elite"
        assert score_rating(89.9) == "high"
        assert score_rating(70) == "high"
        assert score_rating(50) == "medium"
        assert score_rating(49) == "low"

    def test_health_status(self):
        assert health_status(95) == "excellent"
        assert health_status(70) == "good"
        assert health_status(69) == "fair"
        assert health_status(10) == "poor"

    def test_duration_rating(self):
        assert duration_rating(0.9) == "elite"
        assert duration_rating(1) == "high"
        assert duration_rating(24) == "medium"
        assert duration_rating(168) == "low"


class TestFormatting:
    def test_format_duration(self):
        assert format_duration(0.25) == "15 minutes"
        assert format_duration(1) == "1.0 hours"
        assert format_duration(23.96) == "24.0 hours"
        assert format_duration(36) == "1.5 days"

    def test_contains_keyword_is_case_insensitive(self):
        assert contains_keyword("HOTFIX for login", ("fix",))
        assert not contains_keyword("feature", ("fix", "bug"))

    def test_format_time_ago_boundaries(self):
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert format_time_ago(now - timedelta(minutes=59), now) == "Less than an hour ago"
        assert format_time_ago(now - timedelta(hours=23, minutes=59), now) == "23 hours ago"
        assert format_time_ago(now - timedelta(hours=47), now) == "1 day ago"
        assert format_time_ago(now - timedelta(days=29), now) == "29 days ago"
        assert format_time_ago(now - timedelta(days=30), now) == "4/1/2024"
