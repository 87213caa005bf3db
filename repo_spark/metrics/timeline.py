"""Daily commit timeline over a trailing window of local calendar days."""

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo

from repo_spark.metrics.base import resolve_now
from repo_spark.models import CommitRecord, TimelineDay

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip


def activity_tier(commits: int) -> str:
    """Activity bucket for a day's commit count."""
    if commits >= 10:
        return "very-high"
    if commits >= 5:
        return "high"
    if commits >= 2:
        return "medium"
    if commits >= 1:
        return "low"
    return "none"


def local_date(moment: datetime, tz: tzinfo | None = None) -> date:
    """Calendar date of ``moment`` in ``tz`` (system local time when None)."""
    return moment.astimezone(tz).date()


def format_day_label(day: date) -> str:
    """Short display label, e.g. ``Jan 5``."""
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.day}"


def calculate_timeline(
    commits: list[CommitRecord],
    days: int = 20,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[TimelineDay]:
    """
    One entry per day for the last ``days`` days, oldest first, ending today.

    Commits are attributed to days by their local calendar date in ``tz``.
    """
    today = local_date(resolve_now(now), tz)

    counts: dict[date, int] = defaultdict(int)
    lines: dict[date, int] = defaultdict(int)
    for commit in commits:
        day = local_date(commit.timestamp, tz)
        counts[day] += 1
        lines[day] += commit.lines_changed

    timeline = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        timeline.append(
            TimelineDay(
                date=format_day_label(day),
                commits=counts[day],
                lines_changed=lines[day],
                activity=activity_tier(counts[day]),
            )
        )
    return timeline
