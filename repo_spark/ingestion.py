"""
Bounded commit ingestion.

Lists commit history page by page and fetches per-commit diff statistics for
only the most recent commits. Three caps keep the number of upstream calls in
check: total commits listed, commits receiving a detail fetch, and page size.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Any

import httpx
from rich.console import Console

from repo_spark.config import IngestionLimits
from repo_spark.errors import AnalysisError, ErrorKind
from repo_spark.models import CommitRecord
from repo_spark.vcs.base import BaseVCSProvider

console = Console(stderr=True)


def format_since(since: datetime) -> str:
    """Render a ``since`` bound the way the commits endpoint expects it."""
    return since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _stop_reason(
    deadline: float | None, cancel_event: threading.Event | None
) -> str | None:
    if cancel_event is not None and cancel_event.is_set():
        return "cancelled"
    if deadline is not None and time.monotonic() >= deadline:
        return "time budget exhausted"
    return None


def _base_record(entry: dict[str, Any], repository: str) -> CommitRecord | None:
    """Build a degraded record from a listing entry, or None if it has no date."""
    commit = entry.get("commit") or {}
    author = commit.get("author") or {}
    committer = commit.get("committer") or {}

    date = author.get("date") or committer.get("date")
    if not date:
        return None

    return CommitRecord(
        sha=entry["sha"],
        message=commit.get("message") or "",
        author=author.get("name") or "Unknown",
        email=author.get("email") or "",
        date=date,
        additions=0,
        deletions=0,
        changed_files=1,
        detail_fetched=False,
        repository=repository,
    )


def _with_details(
    provider: BaseVCSProvider, owner: str, repo: str, record: CommitRecord
) -> CommitRecord:
    """Fetch diff statistics for ``record``; keep it degraded if that fails."""
    try:
        details = provider.get_commit(owner, repo, record.sha)
    except (AnalysisError, httpx.HTTPError) as e:
        console.print(
            f"  [yellow]⚠️  Could not fetch details for commit {record.sha[:7]}, "
            f"using basic data: {e}[/yellow]"
        )
        return record

    stats = details.get("stats") or {}
    return record._replace(
        additions=stats.get("additions") or 0,
        deletions=stats.get("deletions") or 0,
        changed_files=len(details.get("files") or []),
        detail_fetched=True,
    )


def fetch_commits(
    provider: BaseVCSProvider,
    owner: str,
    repo: str,
    since: datetime | None = None,
    limits: IngestionLimits = IngestionLimits(),
    deadline: float | None = None,
    cancel_event: threading.Event | None = None,
) -> list[CommitRecord]:
    """
    Fetch a bounded window of commit history for ``owner/repo``.

    Records come back in listing order (most recent first). The first
    ``limits.max_detailed_commits`` receive a detail fetch; later ones, and
    any whose detail fetch fails, are degraded records
    (``additions=0, deletions=0, changed_files=1, detail_fetched=False``).

    Args:
        provider: Hosting platform provider.
        owner: Repository owner.
        repo: Repository name.
        since: Only list commits after this moment.
        limits: Listing, detail and page size caps.
        deadline: ``time.monotonic()`` value after which no more calls are made.
        cancel_event: Set to stop ingestion early.

    Returns:
        The commits gathered; partial when stopped by ``deadline`` or
        ``cancel_event``.

    Raises:
        AnalysisError: When a page of the listing cannot be fetched.
    """
    repository = f"{owner}/{repo}"
    since_param = format_since(since) if since is not None else None
    per_page = max(1, min(limits.page_size, limits.max_commits))

    records: list[CommitRecord] = []
    stop_reason: str | None = None
    page = 1

    while len(records) < limits.max_commits:
        stop_reason = _stop_reason(deadline, cancel_event)
        if stop_reason:
            break

        try:
            commit_page = provider.list_commits(
                owner, repo, page=page, per_page=per_page, since=since_param
            )
        except AnalysisError:
            raise
        except httpx.HTTPError as e:
            raise AnalysisError(
                ErrorKind.UNKNOWN, f"Failed to fetch commits: {e}"
            ) from e

        if not commit_page:
            break

        for entry in commit_page:
            if len(records) >= limits.max_commits:
                break

            record = _base_record(entry, repository)
            if record is None:
                console.print(
                    f"  [yellow]⚠️  Skipping commit {entry.get('sha', '?')[:7]} "
                    f"in {repository}: no author or committer date[/yellow]"
                )
                continue

            if len(records) < limits.max_detailed_commits and stop_reason is None:
                stop_reason = _stop_reason(deadline, cancel_event)
                if stop_reason is None:
                    record = _with_details(provider, owner, repo, record)
            records.append(record)

        if stop_reason or len(commit_page) < per_page:
            break
        page += 1

    if stop_reason:
        console.print(
            f"  [yellow]⚠️  Stopped ingesting {repository} ({stop_reason}); "
            f"keeping {len(records)} commits[/yellow]"
        )

    detailed = sum(1 for record in records if record.detail_fetched)
    console.print(
        f"[dim]Fetched {len(records)} commits for {repository} "
        f"({detailed} with details)[/dim]"
    )
    return records
