"""
User-level views over a profile, its repositories and the merged commit list.

Several of the best-practice percentages are proxies computed from
repository flags (for example "has CI" is read from the pages or downloads
flag). They are heuristics, not detections of the actual files.
"""

from collections import Counter
from datetime import date, datetime, timedelta, tzinfo
from typing import Any

from repo_spark.metrics.base import percentage, resolve_now, round_half_up
from repo_spark.metrics.timeline import local_date
from repo_spark.models import (
    ActivityMetrics,
    BestPractices,
    CommitRecord,
    Impact,
    PortfolioSummary,
    RepoSummary,
    UserAnalysis,
    UserProfile,
    parse_timestamp,
    sort_by_date,
)

ACTIVE_WINDOW_DAYS = 90
TOP_REPOS = 5
TOP_TOPICS = 10


def build_user_profile(user: dict[str, Any], now: datetime | None = None) -> UserProfile:
    """Reshape the profile payload; account age is whole days since creation."""
    account_age_days = 0
    if user.get("created_at"):
        age = resolve_now(now) - parse_timestamp(user["created_at"])
        account_age_days = age.days

    return UserProfile(
        username=user["login"],
        name=user.get("name"),
        avatar_url=user.get("avatar_url") or "",
        followers=user.get("followers") or 0,
        following=user.get("following") or 0,
        public_repos=user.get("public_repos") or 0,
        account_age_days=account_age_days,
        hireable=user.get("hireable"),
        company=user.get("company"),
        location=user.get("location"),
        bio=user.get("bio"),
    )


def build_portfolio_summary(
    repos: list[dict[str, Any]], now: datetime | None = None
) -> PortfolioSummary:
    cutoff = resolve_now(now) - timedelta(days=ACTIVE_WINDOW_DAYS)

    languages: dict[str, int] = {}
    for repo in repos:
        if repo.get("language"):
            languages[repo["language"]] = languages.get(repo["language"], 0) + 1

    by_stars = sorted(
        repos, key=lambda repo: repo.get("stargazers_count") or 0, reverse=True
    )
    top_repos = [
        RepoSummary(
            name=repo["name"],
            stars=repo.get("stargazers_count") or 0,
            description=repo.get("description"),
            language=repo.get("language"),
        )
        for repo in by_stars[:TOP_REPOS]
    ]

    return PortfolioSummary(
        total_owned=sum(1 for repo in repos if not repo.get("fork")),
        total_forked=sum(1 for repo in repos if repo.get("fork")),
        total_archived=sum(1 for repo in repos if repo.get("archived")),
        repos_active_last_90d=sum(
            1
            for repo in repos
            if repo.get("updated_at") and parse_timestamp(repo["updated_at"]) > cutoff
        ),
        # Downloads flag stands in for "publishes releases"
        repos_with_releases=sum(1 for repo in repos if repo.get("has_downloads")),
        languages=languages,
        top_repos_by_stars=top_repos,
        total_stars=sum(repo.get("stargazers_count") or 0 for repo in repos),
        total_forks=sum(repo.get("forks_count") or 0 for repo in repos),
    )


def longest_streak(days: set[date]) -> int:
    """Longest run of consecutive calendar days in ``days``."""
    longest = 0
    current = 0
    previous = None
    for day in sorted(days):
        if previous is not None and day - previous == timedelta(days=1):
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = day
    return longest


def build_activity_metrics(
    commits: list[CommitRecord], tz: tzinfo | None = None
) -> ActivityMetrics:
    """
    Activity patterns of the merged commit list.

    Days, weekdays and hours are taken in local time (``tz``, or the system
    timezone when None). ``commits_by_weekday`` starts on Sunday.
    """
    if not commits:
        return ActivityMetrics(
            total_commits=0,
            active_days=0,
            longest_streak=0,
            avg_commits_per_active_day=0,
            commits_by_weekday=[0] * 7,
            commits_by_hour=[0] * 24,
            repos_contributed_count=0,
            first_commit_date=None,
            last_commit_date=None,
        )

    sorted_commits = sort_by_date(commits)
    active_days = set()
    by_weekday = [0] * 7
    by_hour = [0] * 24
    for commit in sorted_commits:
        local = commit.timestamp.astimezone(tz)
        active_days.add(local_date(commit.timestamp, tz))
        by_weekday[(local.weekday() + 1) % 7] += 1
        by_hour[local.hour] += 1

    return ActivityMetrics(
        total_commits=len(sorted_commits),
        active_days=len(active_days),
        longest_streak=longest_streak(active_days),
        avg_commits_per_active_day=round_half_up(
            len(sorted_commits) / len(active_days) * 100
        )
        / 100,
        commits_by_weekday=by_weekday,
        commits_by_hour=by_hour,
        repos_contributed_count=len(
            {commit.repository for commit in sorted_commits if commit.repository}
        ),
        first_commit_date=sorted_commits[0].date,
        last_commit_date=sorted_commits[-1].date,
    )


def build_best_practices(repos: list[dict[str, Any]]) -> BestPractices:
    total = len(repos)

    def pct(predicate) -> int:
        if not total:
            return 0
        return percentage(sum(1 for repo in repos if predicate(repo)), total)

    return BestPractices(
        pct_with_license=pct(lambda repo: repo.get("license")),
        pct_with_readme=pct(
            lambda repo: repo.get("has_wiki")
            or "readme" in (repo.get("description") or "").lower()
        ),
        pct_with_ci=pct(lambda repo: repo.get("has_pages") or repo.get("has_downloads")),
        pct_with_topics=pct(lambda repo: repo.get("topics")),
        pct_with_contributing=pct(lambda repo: repo.get("has_issues")),
        pct_with_description=pct(lambda repo: (repo.get("description") or "").strip()),
        archived_ratio=pct(lambda repo: repo.get("archived")),
    )


def build_impact(repos: list[dict[str, Any]], commits: list[CommitRecord]) -> Impact:
    """
    Topic popularity and two ad hoc scores.

    - contribution: commits * 0.1 + total stars * 0.5 + repositories * 2,
      capped at 100
    - diversity: 10 per distinct language, capped at 100
    """
    topics: Counter[str] = Counter()
    for repo in repos:
        topics.update(repo.get("topics") or [])

    languages = {repo["language"] for repo in repos if repo.get("language")}
    total_stars = sum(repo.get("stargazers_count") or 0 for repo in repos)
    contribution = min(len(commits) * 0.1 + total_stars * 0.5 + len(repos) * 2, 100)

    return Impact(
        # most_common keeps first-seen order among equal counts
        popular_topics=[topic for topic, _ in topics.most_common(TOP_TOPICS)],
        contribution_score=round_half_up(contribution),
        diversity_score=min(len(languages) * 10, 100),
    )


def build_user_analysis(
    user: dict[str, Any],
    repos: list[dict[str, Any]],
    commits: list[CommitRecord],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> UserAnalysis:
    """Compute the five user views."""
    return UserAnalysis(
        user_profile=build_user_profile(user, now),
        portfolio_summary=build_portfolio_summary(repos, now),
        activity_metrics=build_activity_metrics(commits, tz),
        best_practices=build_best_practices(repos),
        impact=build_impact(repos, commits),
    )
