"""
GitHub VCS provider implementation for repo-spark.

This module talks to the GitHub REST API to fetch repository, user and commit
data. Responses are cached in an injected MemoryCache and every call is
recorded in an injected ApiStatsTracker.
"""

import os
import time
from typing import Any

import httpx
from dotenv import load_dotenv

from repo_spark.api_stats import ApiStatsTracker
from repo_spark.errors import AnalysisError, ErrorKind
from repo_spark.http_client import _get_http_client
from repo_spark.memory_cache import MemoryCache
from repo_spark.vcs.base import BaseVCSProvider

# Load environment variables
load_dotenv()

# GitHub API endpoint
GITHUB_REST_API = "https://api.github.com"

# Web hosts whose repository and user URLs this provider serves
GITHUB_HOSTS = ("github.com", "www.github.com")

# Page size used when listing a user's repositories
USER_REPOS_PAGE_SIZE = 30


class GitHubProvider(BaseVCSProvider):
    """GitHub VCS provider using the REST API."""

    def __init__(
        self,
        token: str | None = None,
        cache: MemoryCache | None = None,
        stats: ApiStatsTracker | None = None,
        base_url: str = GITHUB_REST_API,
    ):
        """
        Initialize GitHub provider.

        Args:
            token: GitHub Personal Access Token. If not provided, reads from
                   GITHUB_TOKEN environment variable.
            cache: Response cache shared across requests, if any.
            stats: Call tracker shared across requests, if any.
            base_url: REST API root (GitHub Enterprise installs differ).

        Raises:
            AnalysisError: AUTH_REQUIRED if no token is available.
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise AnalysisError(
                ErrorKind.AUTH_REQUIRED,
                "GITHUB_TOKEN is required for GitHub provider.\n"
                "\n"
                "To get started:\n"
                "1. Create a GitHub Personal Access Token:\n"
                "   → https://github.com/settings/tokens/new\n"
                "2. Select scopes: 'repo' and 'read:user'\n"
                "3. Set the token:\n"
                "   export GITHUB_TOKEN='your_token_here'  # Linux/macOS\n"
                "   or add to your .env file: GITHUB_TOKEN=your_token_here\n",
            )
        self.cache = cache
        self.stats = stats
        self.base_url = base_url.rstrip("/")

    def get_platform_name(self) -> str:
        """Return 'github' as the platform identifier."""
        return "github"

    def get_repository_url(self, owner: str, repo: str) -> str:
        """Construct GitHub repository URL."""
        return f"https://github.com/{owner}/{repo}"

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        return self._get(
            f"/repos/{owner}/{repo}",
            endpoint="/repos/{owner}/{repo}",
            resource=f"Repository {owner}/{repo}",
        )

    def get_user(self, username: str) -> dict[str, Any]:
        return self._get(
            f"/users/{username}",
            endpoint="/users/{username}",
            resource=f"User {username}",
        )

    def list_user_repositories(
        self, username: str, max_repos: int = 10
    ) -> list[dict[str, Any]]:
        """
        List up to ``max_repos`` repositories owned by ``username``.

        Pages are requested most recently updated first until enough
        repositories are collected or the listing runs out.
        """
        repos: list[dict[str, Any]] = []
        page = 1
        while len(repos) < max_repos:
            repo_page = self._get(
                f"/users/{username}/repos",
                params={
                    "type": "owner",
                    "sort": "updated",
                    "per_page": USER_REPOS_PAGE_SIZE,
                    "page": page,
                },
                endpoint="/users/{username}/repos",
                resource=f"User {username}",
            )
            if not repo_page:
                break
            repos.extend(repo_page[: max_repos - len(repos)])
            if len(repo_page) < USER_REPOS_PAGE_SIZE:
                break
            page += 1
        return repos

    def list_commits(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: int = 50,
        since: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"per_page": per_page, "page": page}
        if since:
            params["since"] = since
        return self._get(
            f"/repos/{owner}/{repo}/commits",
            params=params,
            endpoint="/repos/{owner}/{repo}/commits",
            resource=f"Repository {owner}/{repo}",
        )

    def get_commit(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        return self._get(
            f"/repos/{owner}/{repo}/commits/{sha}",
            endpoint="/repos/{owner}/{repo}/commits/{ref}",
            resource=f"Commit {sha}",
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        endpoint: str | None = None,
        resource: str = "Resource",
    ) -> Any:
        """
        Issue a GET request, serving and filling the response cache.

        Args:
            path: Request path below the API root.
            params: Query parameters.
            endpoint: Path template recorded in the call statistics.
            resource: Human-readable subject used in error messages.

        Raises:
            AnalysisError: For non-2xx responses and transport failures.
        """
        endpoint = endpoint or path
        cache_key = path
        if params:
            cache_key += "?" + "&".join(f"{k}={params[k]}" for k in sorted(params))

        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                if self.stats is not None:
                    self.stats.track_call(endpoint, from_cache=True)
                return cached

        client = _get_http_client()
        started = time.perf_counter()
        try:
            response = client.get(
                f"{self.base_url}{path}", params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise AnalysisError(
                ErrorKind.UNKNOWN, f"GitHub request to {path} failed: {e}"
            ) from e
        elapsed_ms = (time.perf_counter() - started) * 1000

        if self.stats is not None:
            self.stats.track_call(endpoint, response_time=elapsed_ms)

        _raise_for_status(response, resource)
        data = response.json()

        if self.cache is not None:
            self.cache.set(cache_key, data)
        return data


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""


def _raise_for_status(response: httpx.Response, resource: str) -> None:
    """Translate an error response into a typed AnalysisError."""
    status = response.status_code
    if status < 400:
        return

    message = _error_message(response)
    if status == 404:
        raise AnalysisError(
            ErrorKind.NOT_FOUND, f"{resource} not found or not accessible"
        )
    if status == 429 or (
        status == 403
        and (
            response.headers.get("X-RateLimit-Remaining") == "0"
            or "rate limit" in message.lower()
        )
    ):
        details = {}
        reset = response.headers.get("X-RateLimit-Reset")
        if reset:
            details["reset"] = reset
        raise AnalysisError(
            ErrorKind.RATE_LIMITED,
            "GitHub API rate limit exceeded. Please try again later.",
            details,
        )
    if status == 401:
        raise AnalysisError(
            ErrorKind.AUTH_REQUIRED, "GitHub rejected the configured token"
        )
    raise AnalysisError(
        ErrorKind.UNKNOWN, f"GitHub API error {status}: {message}".rstrip(": ")
    )
