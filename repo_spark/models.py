"""
Data structures shared by ingestion, the metric functions and the orchestrator.
"""

from datetime import datetime
from typing import Any, NamedTuple


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix accepted) into an aware datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        # Naive timestamps are treated as local time
        parsed = parsed.astimezone()
    return parsed


# --- Commits ---


class CommitRecord(NamedTuple):
    """A single commit as consumed by every metric function."""

    sha: str
    message: str
    author: str
    email: str
    date: str  # ISO-8601 author date
    additions: int = 0
    deletions: int = 0
    changed_files: int = 1
    detail_fetched: bool = True  # False for degraded records
    repository: str | None = None  # "owner/repo"

    @property
    def timestamp(self) -> datetime:
        return parse_timestamp(self.date)

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions

    @property
    def identity(self) -> str:
        """Contributor identity key (exact name + email concatenation)."""
        return self.author + self.email


def sort_by_date(commits: list[CommitRecord]) -> list[CommitRecord]:
    """Return a new list ordered by author date, oldest first."""
    return sorted(commits, key=lambda commit: commit.timestamp)


# --- Repository metric bundles ---


class MetricValue(NamedTuple):
    """A displayed value with its 0-100 score and rating."""

    value: str
    score: float
    rating: str  # "elite", "high", "medium", "low"


class DoraMetrics(NamedTuple):
    deployment_frequency: MetricValue
    lead_time: MetricValue
    change_failure_rate: MetricValue
    recovery_time: MetricValue
    overall_score: int
    overall_rating: str


class HealthMetrics(NamedTuple):
    overall_score: int
    status: str  # "excellent", "good", "fair", "poor"
    total_commits: int
    files_changed: int
    active_contributors: int
    code_velocity: str
    innovation_ratio: int
    technical_debt: int
    last_activity: str


class Contributor(NamedTuple):
    name: str
    email: str
    commits: int
    lines_added: int
    lines_deleted: int
    files_changed: int
    rank: int


class TimelineDay(NamedTuple):
    date: str
    commits: int
    lines_changed: int
    activity: str  # "very-high", "high", "medium", "low", "none"


class WorkClassification(NamedTuple):
    innovation: int
    bug_fixes: int
    maintenance: int
    documentation: int


# --- User views ---


class UserProfile(NamedTuple):
    username: str
    name: str | None
    avatar_url: str
    followers: int
    following: int
    public_repos: int
    account_age_days: int
    hireable: bool | None
    company: str | None
    location: str | None
    bio: str | None


class RepoSummary(NamedTuple):
    name: str
    stars: int
    description: str | None
    language: str | None


class PortfolioSummary(NamedTuple):
    total_owned: int
    total_forked: int
    total_archived: int
    repos_active_last_90d: int
    repos_with_releases: int
    languages: dict[str, int]
    top_repos_by_stars: list[RepoSummary]
    total_stars: int
    total_forks: int


class ActivityMetrics(NamedTuple):
    total_commits: int
    active_days: int
    longest_streak: int
    avg_commits_per_active_day: float
    commits_by_weekday: list[int]  # index 0 = Sunday
    commits_by_hour: list[int]
    repos_contributed_count: int
    first_commit_date: str | None
    last_commit_date: str | None


class BestPractices(NamedTuple):
    pct_with_license: int
    pct_with_readme: int
    pct_with_ci: int
    pct_with_topics: int
    pct_with_contributing: int
    pct_with_description: int
    archived_ratio: int


class Impact(NamedTuple):
    popular_topics: list[str]
    contribution_score: int
    diversity_score: int


class UserAnalysis(NamedTuple):
    user_profile: UserProfile
    portfolio_summary: PortfolioSummary
    activity_metrics: ActivityMetrics
    best_practices: BestPractices
    impact: Impact


# --- Serialization ---

# Keys whose camelCase form is not a plain capitalisation of the parts
_KEY_OVERRIDES = {
    "pct_with_ci": "pctWithCI",
}


def camel_case(key: str) -> str:
    """Convert a snake_case field name to the camelCase used in payloads."""
    if key in _KEY_OVERRIDES:
        return _KEY_OVERRIDES[key]
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_payload(obj: Any) -> Any:
    """
    Convert metric structures into JSON-ready payloads.

    NamedTuples become dicts with camelCase keys; lists and dicts are converted
    recursively (dict keys such as language names are left untouched).
    """
    if isinstance(obj, tuple) and hasattr(obj, "_asdict"):
        return {camel_case(key): to_payload(value) for key, value in obj._asdict().items()}
    if isinstance(obj, dict):
        return {key: to_payload(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_payload(item) for item in obj]
    return obj
