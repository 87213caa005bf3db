"""
Analysis orchestration for repo-spark.

Turns a GitHub URL into an analysis record: validates the request, serves a
recent stored result when one exists, otherwise ingests commits, runs the
metric functions and stores the outcome.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, NamedTuple
from urllib.parse import urlparse

import httpx
from rich.console import Console

from repo_spark.aggregation import aggregate_user
from repo_spark.config import DEFAULT_RESULT_TTL, IngestionLimits
from repo_spark.errors import AnalysisError, ErrorKind
from repo_spark.ingestion import fetch_commits
from repo_spark.metrics import (
    calculate_contributors,
    calculate_dora_metrics,
    calculate_health_metrics,
    calculate_timeline,
    calculate_user_health_metrics,
    calculate_work_classification,
)
from repo_spark.metrics.base import resolve_now
from repo_spark.models import CommitRecord, HealthMetrics, parse_timestamp, to_payload
from repo_spark.store import AnalysisStore
from repo_spark.user_analysis import build_user_analysis
from repo_spark.vcs import platform_for_host
from repo_spark.vcs.base import BaseVCSProvider

console = Console(stderr=True)

ANALYSIS_TYPES = ("repository", "user")

REPOSITORY_RESPONSE_KEYS = (
    "id",
    "repositoryUrl",
    "repositoryName",
    "repositoryOwner",
    "analysisType",
    "doraMetrics",
    "healthMetrics",
    "contributors",
    "timeline",
    "workClassification",
    "createdAt",
)
USER_RESPONSE_KEYS = (
    "id",
    "userUrl",
    "username",
    "analysisType",
    "userAnalysis",
    "createdAt",
)


class AnalysisTarget(NamedTuple):
    url: str
    analysis_type: str
    owner: str
    repo: str | None = None


def _path_segments(url: str) -> list[str]:
    """Validate scheme and host, then return the URL's path segments."""
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise AnalysisError(ErrorKind.VALIDATION, f"Invalid URL: {url}")
    if platform_for_host(parsed.hostname) != "github":
        raise AnalysisError(
            ErrorKind.VALIDATION, f"Only github.com URLs are supported, got: {url}"
        )

    segments = parsed.path.strip("/").split("/")
    if not segments or any(not segment for segment in segments):
        raise AnalysisError(
            ErrorKind.VALIDATION,
            "Invalid GitHub URL format. Expected repository "
            "(github.com/owner/repo) or user (github.com/username)",
        )
    return segments


def detect_analysis_type(url: str) -> str:
    """Infer 'repository' or 'user' from the shape of ``url``."""
    segments = _path_segments(url)
    if len(segments) == 2:
        return "repository"
    if len(segments) == 1:
        return "user"
    raise AnalysisError(
        ErrorKind.VALIDATION,
        f"Cannot tell a repository or user from {url}",
    )


def parse_analysis_request(url: str, analysis_type: str) -> AnalysisTarget:
    """
    Validate an analysis request before any network call.

    Repository URLs must look like ``https://github.com/owner/repo`` (a
    trailing slash and ``.git`` suffix are accepted); user URLs like
    ``https://github.com/username``.

    Raises:
        AnalysisError: VALIDATION for a malformed URL or unknown type.
    """
    if analysis_type not in ANALYSIS_TYPES:
        raise AnalysisError(
            ErrorKind.VALIDATION,
            f"Analysis type must be 'repository' or 'user', got '{analysis_type}'",
        )

    segments = _path_segments(url)
    url = url.strip()

    if analysis_type == "repository":
        if len(segments) != 2:
            raise AnalysisError(
                ErrorKind.VALIDATION,
                f"Expected a repository URL (github.com/owner/repo), got: {url}",
            )
        owner, repo = segments
        if repo.endswith(".git"):
            repo = repo[: -len(".git")]
        if not repo:
            raise AnalysisError(ErrorKind.VALIDATION, f"Missing repository name: {url}")
        return AnalysisTarget(url, analysis_type, owner, repo)

    if len(segments) != 1:
        raise AnalysisError(
            ErrorKind.VALIDATION,
            f"Expected a user URL (github.com/username), got: {url}",
        )
    return AnalysisTarget(url, analysis_type, segments[0])


def _metric_payloads(
    commits: list[CommitRecord], health: HealthMetrics, now: datetime
) -> dict[str, Any]:
    return {
        "doraMetrics": to_payload(calculate_dora_metrics(commits)),
        "healthMetrics": to_payload(health),
        "contributors": to_payload(calculate_contributors(commits)),
        "timeline": to_payload(calculate_timeline(commits, now=now)),
        "workClassification": to_payload(calculate_work_classification(commits)),
    }


def to_response(record: dict[str, Any]) -> dict[str, Any]:
    """Select the response fields of a stored record for its analysis type."""
    keys = (
        USER_RESPONSE_KEYS
        if record["analysisType"] == "user"
        else REPOSITORY_RESPONSE_KEYS
    )
    return {key: record.get(key) for key in keys}


class Analyzer:
    """Runs analyses against a provider and keeps their records in a store."""

    def __init__(
        self,
        provider_factory: Callable[[], BaseVCSProvider],
        store: AnalysisStore,
        result_ttl: float = DEFAULT_RESULT_TTL,
        limits: IngestionLimits | None = None,
        lookback_days: int = 90,
        repo_timeout: float | None = None,
    ):
        """
        Args:
            provider_factory: Called once per analysis that needs the network.
            store: Where records are kept and looked up by URL.
            result_ttl: Seconds a stored result is served instead of re-ingesting.
            limits: Ingestion caps for repository mode.
            lookback_days: Size of the commit window.
            repo_timeout: Seconds allowed for each repository's ingestion.
        """
        self.provider_factory = provider_factory
        self.store = store
        self.result_ttl = result_ttl
        self.limits = limits or IngestionLimits()
        self.lookback_days = lookback_days
        self.repo_timeout = repo_timeout

    def analyze(
        self,
        url: str,
        analysis_type: str,
        use_cache: bool = True,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Analyze a repository or user URL and return the response payload.

        Raises:
            AnalysisError: VALIDATION before any network call, and any kind
                raised during ingestion.
        """
        target = parse_analysis_request(url, analysis_type)
        now = resolve_now(now)

        if use_cache:
            cached = self._cached_record(target.url, now)
            if cached is not None:
                console.print(f"[dim]Returning cached analysis for {target.url}[/dim]")
                return to_response(cached)

        provider = self.provider_factory()
        try:
            if target.repo is not None:
                record = self._analyze_repository(
                    provider, target.url, target.owner, target.repo, now
                )
            else:
                record = self._analyze_user(provider, target, now)
        except httpx.HTTPError as e:
            raise AnalysisError(
                ErrorKind.UNKNOWN, f"Unexpected error during analysis: {e}"
            ) from e

        stored = self.store.create(record)
        console.print(f"[dim]Analysis completed for {target.url}[/dim]")
        return to_response(stored)

    def _cached_record(self, url: str, now: datetime) -> dict[str, Any] | None:
        existing = self.store.get_by_url(url)
        if existing is None or not existing.get("createdAt"):
            return None
        age = (now - parse_timestamp(existing["createdAt"])).total_seconds()
        return existing if age < self.result_ttl else None

    def _deadline(self) -> float | None:
        return time.monotonic() + self.repo_timeout if self.repo_timeout else None

    def _analyze_repository(
        self,
        provider: BaseVCSProvider,
        url: str,
        owner: str,
        repo: str,
        now: datetime,
    ) -> dict[str, Any]:
        console.print(f"Analyzing [bold cyan]{owner}/{repo}[/bold cyan]...")
        repository = provider.get_repository(owner, repo)

        commits = fetch_commits(
            provider,
            owner,
            repo,
            since=now - timedelta(days=self.lookback_days),
            limits=self.limits,
            deadline=self._deadline(),
        )

        return {
            "url": url,
            "analysisType": "repository",
            "repositoryUrl": url,
            "repositoryName": repository.get("name") or repo,
            "repositoryOwner": (repository.get("owner") or {}).get("login")
            or owner,
            **_metric_payloads(commits, calculate_health_metrics(commits, now), now),
            "createdAt": now.astimezone(timezone.utc).isoformat(),
        }

    def _analyze_user(
        self, provider: BaseVCSProvider, target: AnalysisTarget, now: datetime
    ) -> dict[str, Any]:
        console.print(f"Analyzing user [bold cyan]{target.owner}[/bold cyan]...")
        aggregate = aggregate_user(
            provider,
            target.owner,
            lookback_days=self.lookback_days,
            repo_timeout=self.repo_timeout,
            now=now,
        )
        user_analysis = build_user_analysis(
            aggregate.user, aggregate.repositories, aggregate.commits, now=now
        )
        health = calculate_user_health_metrics(
            aggregate.commits, aggregate.repositories, now
        )

        return {
            "url": target.url,
            "analysisType": "user",
            "userUrl": target.url,
            "username": aggregate.user.get("login") or target.owner,
            "userAnalysis": to_payload(user_analysis),
            "repositoryNames": aggregate.repository_names,
            **_metric_payloads(aggregate.commits, health, now),
            "createdAt": now.astimezone(timezone.utc).isoformat(),
        }

    def get_analysis(self, analysis_id: str) -> dict[str, Any]:
        """
        Return the stored response for ``analysis_id``.

        Raises:
            AnalysisError: NOT_FOUND when no such analysis exists.
        """
        record = self.store.get(analysis_id)
        if record is None:
            raise AnalysisError(
                ErrorKind.NOT_FOUND, f"Analysis {analysis_id} not found"
            )
        return to_response(record)

    def recent_analyses(self, limit: int = 10) -> list[dict[str, Any]]:
        """Summaries of the most recent analyses, newest first."""
        summaries = []
        for record in self.store.recent(limit):
            if record["analysisType"] == "user":
                name = record.get("username")
            else:
                name = f"{record.get('repositoryOwner')}/{record.get('repositoryName')}"
            summaries.append(
                {
                    "id": record["id"],
                    "analysisType": record["analysisType"],
                    "url": record["url"],
                    "name": name,
                    "createdAt": record["createdAt"],
                }
            )
        return summaries
