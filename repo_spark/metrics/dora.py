"""DORA delivery metrics approximated from commit cadence."""

from repo_spark.metrics.base import (
    FAILURE_KEYWORDS,
    contains_keyword,
    duration_rating,
    format_duration,
    round_half_up,
    score_rating,
)
from repo_spark.models import CommitRecord, DoraMetrics, MetricValue, sort_by_date

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR

EMPTY_DORA_METRICS = DoraMetrics(
    deployment_frequency=MetricValue("0 commits/day", 0, "low"),
    lead_time=MetricValue("No data", 0, "low"),
    change_failure_rate=MetricValue("0%", 100, "elite"),
    recovery_time=MetricValue("No data", 0, "low"),
    overall_score=0,
    overall_rating="low",
)


def _deployment_frequency(sorted_commits: list[CommitRecord]) -> MetricValue:
    first = sorted_commits[0].timestamp
    last = sorted_commits[-1].timestamp
    # Single-day histories count as one full day
    span_days = max(1.0, (last - first).total_seconds() / SECONDS_PER_DAY)
    commits_per_day = len(sorted_commits) / span_days

    if commits_per_day > 1:
        rating = "elite"
    elif commits_per_day > 0.5:
        rating = "high"
    elif commits_per_day > 0.1:
        rating = "medium"
    else:
        rating = "low"

    return MetricValue(
        f"{commits_per_day:.1f} commits/day",
        min(100, commits_per_day * 20),
        rating,
    )


def _lead_time(sorted_commits: list[CommitRecord]) -> MetricValue:
    total_seconds = 0.0
    for previous, current in zip(sorted_commits, sorted_commits[1:]):
        total_seconds += (current.timestamp - previous.timestamp).total_seconds()
    avg_hours = total_seconds / max(1, len(sorted_commits) - 1) / SECONDS_PER_HOUR

    return MetricValue(
        format_duration(avg_hours),
        max(0, 100 - avg_hours),
        duration_rating(avg_hours),
    )


def _change_failure_rate(
    commits: list[CommitRecord], failures: list[CommitRecord]
) -> MetricValue:
    rate = len(failures) / len(commits) * 100

    if rate < 15:
        rating = "elite"
    elif rate < 20:
        rating = "high"
    elif rate < 30:
        rating = "medium"
    else:
        rating = "low"

    return MetricValue(f"{rate:.1f}%", max(0, 100 - rate * 2), rating)


def _recovery_time(failures: list[CommitRecord]) -> MetricValue:
    gaps: list[float] = []
    for failure, following in zip(failures, failures[1:]):
        gap = (following.timestamp - failure.timestamp).total_seconds()
        if gap > 0:
            gaps.append(gap)

    if not gaps:
        # Fewer than two distinct failure times
        return MetricValue("No data", 50, "medium")

    avg_hours = sum(gaps) / len(gaps) / SECONDS_PER_HOUR
    return MetricValue(
        format_duration(avg_hours),
        max(0, 100 - avg_hours),
        duration_rating(avg_hours),
    )


def calculate_dora_metrics(commits: list[CommitRecord]) -> DoraMetrics:
    """
    Approximate the four DORA indicators from commit metadata.

    - Deployment frequency: commits per day over the history span (min 1 day).
    - Lead time: mean interval between consecutive commits.
    - Change failure rate: share of commits whose message mentions a failure
      keyword (fix, bug, error, revert, hotfix, patch).
    - Recovery time: mean gap between consecutive failure commits.

    The overall score is the rounded mean of the four component scores.
    An empty list yields EMPTY_DORA_METRICS.
    """
    if not commits:
        return EMPTY_DORA_METRICS

    sorted_commits = sort_by_date(commits)
    failures = [
        commit
        for commit in sorted_commits
        if contains_keyword(commit.message, FAILURE_KEYWORDS)
    ]

    deployment_frequency = _deployment_frequency(sorted_commits)
    lead_time = _lead_time(sorted_commits)
    change_failure_rate = _change_failure_rate(sorted_commits, failures)
    recovery_time = _recovery_time(failures)

    scores = [
        deployment_frequency.score,
        lead_time.score,
        change_failure_rate.score,
        recovery_time.score,
    ]
    overall_score = round_half_up(sum(scores) / len(scores))

    return DoraMetrics(
        deployment_frequency=deployment_frequency,
        lead_time=lead_time,
        change_failure_rate=change_failure_rate,
        recovery_time=recovery_time,
        overall_score=overall_score,
        overall_rating=score_rating(overall_score),
    )
