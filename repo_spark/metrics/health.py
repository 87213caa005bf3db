"""
Health score for a single repository and the user-level variant.

The two variants share their descriptive fields but weigh the overall score
differently, so each has its own function.
"""

from datetime import datetime
from typing import Any, NamedTuple

from repo_spark.metrics.base import (
    FIX_KEYWORDS,
    contains_keyword,
    format_time_ago,
    health_status,
    percentage,
    resolve_now,
    round_half_up,
)
from repo_spark.models import CommitRecord, HealthMetrics, sort_by_date

LARGE_COMMIT_LINES = 500


class _HealthFacts(NamedTuple):
    total_commits: int
    files_changed: int
    active_contributors: int
    code_velocity: str
    innovation_ratio: int
    technical_debt: int
    last_activity: str


def _collect_facts(commits: list[CommitRecord], now: datetime) -> _HealthFacts:
    sorted_commits = sort_by_date(commits)
    total = len(sorted_commits)

    total_lines = sum(commit.lines_changed for commit in sorted_commits)
    if sorted_commits:
        elapsed = (now - sorted_commits[0].timestamp).total_seconds() / 86400
        days_since_first = max(1.0, elapsed)
    else:
        days_since_first = 1.0

    innovation = sum(
        1
        for commit in sorted_commits
        if not contains_keyword(commit.message, FIX_KEYWORDS)
    )
    large = sum(
        1 for commit in sorted_commits if commit.lines_changed > LARGE_COMMIT_LINES
    )

    if sorted_commits:
        last_activity = format_time_ago(sorted_commits[-1].timestamp, now)
    else:
        last_activity = "No activity"

    return _HealthFacts(
        total_commits=total,
        files_changed=sum(commit.changed_files for commit in sorted_commits),
        active_contributors=len({commit.identity for commit in sorted_commits}),
        code_velocity=f"{round_half_up(total_lines / days_since_first)} lines/day",
        innovation_ratio=percentage(innovation, total),
        technical_debt=percentage(large, total),
        last_activity=last_activity,
    )


def _build(facts: _HealthFacts, sub_scores: list[float]) -> HealthMetrics:
    overall_score = round_half_up(sum(sub_scores) / len(sub_scores))
    return HealthMetrics(
        overall_score=overall_score,
        status=health_status(overall_score),
        **facts._asdict(),
    )


def calculate_health_metrics(
    commits: list[CommitRecord], now: datetime | None = None
) -> HealthMetrics:
    """
    Repository health.

    Overall score is the mean of:
    - deployment: one point per commit, capped at 100
    - activity: 15 points per distinct contributor, capped at 100
    - quality: 100 minus the technical debt percentage
    """
    facts = _collect_facts(commits, resolve_now(now))
    return _build(
        facts,
        [
            min(100, facts.total_commits),
            min(100, facts.active_contributors * 15),
            max(0, 100 - facts.technical_debt),
        ],
    )


def calculate_user_health_metrics(
    commits: list[CommitRecord],
    repositories: list[dict[str, Any]],
    now: datetime | None = None,
) -> HealthMetrics:
    """
    Health across all of a user's analysed repositories.

    Overall score is the mean of a repository score (10 per repository),
    an activity score (5 per 10 commits), a diversity score (20 per distinct
    contributor) and the quality score, each capped to 0-100.
    """
    facts = _collect_facts(commits, resolve_now(now))
    return _build(
        facts,
        [
            min(100, len(repositories) * 10),
            min(100, facts.total_commits / 10 * 5),
            min(100, facts.active_contributors * 20),
            max(0, 100 - facts.technical_debt),
        ],
    )
