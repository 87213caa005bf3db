"""
Shared helpers for the metric functions: rounding, rating ladders, keyword
matching and display formatting.
"""

import math
from datetime import datetime

# Keywords flagging a commit as a change failure (DORA)
FAILURE_KEYWORDS = ("fix", "bug", "error", "revert", "hotfix", "patch")

# Keywords excluding a commit from the innovation ratio (health).
# Same list without "patch"
FIX_KEYWORDS = ("fix", "bug", "error", "revert", "hotfix")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up."""
    return math.floor(value + 0.5)


def contains_keyword(message: str, keywords: tuple[str, ...]) -> bool:
    """Case-insensitive substring match of any keyword."""
    lowered = message.lower()
    return any(keyword in lowered for keyword in keywords)


def percentage(count: int, total: int) -> int:
    """``count / total`` as a rounded percentage; 0 total counts as 1."""
    return round_half_up(count / max(1, total) * 100)


def score_rating(score: float) -> str:
    """Rating ladder shared by DORA overall score (90/70/50)."""
    if score >= 90:
        return "elite"
    if score >= 70:
        return "high"
    if score >= 50:
        return "medium"
    return "low"


def health_status(score: float) -> str:
    """Status ladder for health scores (90/70/50)."""
    if score >= 90:
        return "excellent"
    if score >= 70:
        return "good"
    if score >= 50:
        return "fair"
    return "poor"


def duration_rating(hours: float) -> str:
    """Rating for lead time and recovery time."""
    if hours < 1:
        return "elite"
    if hours < 24:
        return "high"
    if hours < 168:
        return "medium"
    return "low"


def format_duration(hours: float) -> str:
    """Display a duration in minutes, hours or days depending on magnitude."""
    if hours < 1:
        return f"{round_half_up(hours * 60)} minutes"
    if hours < 24:
        return f"{hours:.1f} hours"
    return f"{hours / 24:.1f} days"


def resolve_now(now: datetime | None) -> datetime:
    """Return ``now`` or the current local time (timezone-aware)."""
    return now if now is not None else datetime.now().astimezone()


def format_time_ago(moment: datetime, now: datetime | None = None) -> str:
    """
    Relative description of ``moment``.

    Falls back to an M/D/YYYY date, in the timezone of ``now``, once 30
    days have passed.
    """
    now = resolve_now(now)
    diff_hours = math.floor((now - moment).total_seconds() / 3600)
    diff_days = math.floor(diff_hours / 24)

    if diff_hours < 1:
        return "Less than an hour ago"
    if diff_hours < 24:
        return f"{diff_hours} hour{'' if diff_hours == 1 else 's'} ago"
    if diff_days == 1:
        return "1 day ago"
    if diff_days < 30:
        return f"{diff_days} days ago"
    local = moment.astimezone(now.tzinfo)
    return f"{local.month}/{local.day}/{local.year}"
