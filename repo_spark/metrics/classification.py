"""Keyword-based classification of commit messages into kinds of work."""

from repo_spark.metrics.base import contains_keyword, percentage
from repo_spark.models import CommitRecord, WorkClassification

# Checked in order; the first matching category wins
CATEGORY_KEYWORDS = (
    ("bug_fixes", ("fix", "bug", "error")),
    ("maintenance", ("refactor", "cleanup", "optimize")),
    ("documentation", ("doc", "readme", "comment")),
)
DEFAULT_CATEGORY = "innovation"


def classify_message(message: str) -> str:
    """Return the WorkClassification field a commit message counts towards."""
    for category, keywords in CATEGORY_KEYWORDS:
        if contains_keyword(message, keywords):
            return category
    return DEFAULT_CATEGORY


def calculate_work_classification(commits: list[CommitRecord]) -> WorkClassification:
    """
    Share of commits per category, each rounded independently.

    The percentages may not add up to exactly 100. An empty list yields zeros.
    """
    counts = dict.fromkeys(WorkClassification._fields, 0)
    for commit in commits:
        counts[classify_message(commit.message)] += 1

    total = len(commits)
    if total == 0:
        return WorkClassification(**counts)
    return WorkClassification(
        **{category: percentage(count, total) for category, count in counts.items()}
    )
