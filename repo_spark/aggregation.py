"""
Commit aggregation across the repositories a user owns.

Repositories are ingested one at a time, each under its own time budget.
"""

import threading
import time
from datetime import datetime, timedelta
from typing import Any, NamedTuple

from rich.console import Console

from repo_spark.config import IngestionLimits
from repo_spark.errors import AnalysisError, ErrorKind
from repo_spark.ingestion import fetch_commits
from repo_spark.metrics.base import resolve_now
from repo_spark.models import CommitRecord
from repo_spark.vcs.base import BaseVCSProvider

console = Console(stderr=True)


class UserAggregate(NamedTuple):
    user: dict[str, Any]
    repositories: list[dict[str, Any]]
    commits: list[CommitRecord]
    repository_names: list[str]  # repositories whose ingestion succeeded


def aggregate_user(
    provider: BaseVCSProvider,
    username: str,
    max_repos: int = 10,
    per_repo_commits: int = 25,
    lookback_days: int = 90,
    repo_timeout: float | None = None,
    now: datetime | None = None,
    cancel_event: threading.Event | None = None,
) -> UserAggregate:
    """
    Fetch a user's profile, repositories and recent commits.

    Args:
        provider: Hosting platform provider.
        username: Account to aggregate.
        max_repos: Number of owned, non-fork repositories to ingest.
        per_repo_commits: Commits listed (and detail-fetched) per repository.
        lookback_days: Only commits newer than this many days are ingested.
        repo_timeout: Seconds allowed for each repository's ingestion.
        now: Reference time for the lookback window.
        cancel_event: Set to stop remaining ingestion.

    Raises:
        AnalysisError: NOT_FOUND when the user owns no usable repositories,
            EMPTY_RESULT when none of them has a commit in the window, and any
            error raised while fetching the profile or repository list.
    """
    user = provider.get_user(username)

    # Forks are filtered here, not by the listing endpoint
    listed = provider.list_user_repositories(username, max_repos=max_repos)
    repositories = [repo for repo in listed if not repo.get("fork")][:max_repos]
    if not repositories:
        raise AnalysisError(
            ErrorKind.NOT_FOUND, f"No public repositories found for user {username}"
        )

    console.print(
        f"Analyzing [bold cyan]{len(repositories)}[/bold cyan] repositories "
        f"for user [bold cyan]{username}[/bold cyan]..."
    )

    since = resolve_now(now) - timedelta(days=lookback_days)
    limits = IngestionLimits(
        max_commits=per_repo_commits,
        max_detailed_commits=per_repo_commits,
    )

    commits: list[CommitRecord] = []
    repository_names: list[str] = []
    for repo in repositories:
        if cancel_event is not None and cancel_event.is_set():
            console.print(
                "  [yellow]⚠️  Cancelled; skipping remaining repositories[/yellow]"
            )
            break

        deadline = time.monotonic() + repo_timeout if repo_timeout else None
        try:
            repo_commits = fetch_commits(
                provider,
                username,
                repo["name"],
                since=since,
                limits=limits,
                deadline=deadline,
                cancel_event=cancel_event,
            )
        except AnalysisError as e:
            console.print(
                f"  [yellow]⚠️  Could not fetch commits for {repo['name']}: "
                f"{e.message}[/yellow]"
            )
            continue

        commits.extend(repo_commits[:per_repo_commits])
        repository_names.append(repo["name"])

    if not commits:
        raise AnalysisError(
            ErrorKind.EMPTY_RESULT,
            f"No commits found in the last {lookback_days} days for user {username}",
        )

    console.print(
        f"[dim]Merged {len(commits)} commits across "
        f"{len(repository_names)} repositories[/dim]"
    )
    return UserAggregate(user, repositories, commits, repository_names)
