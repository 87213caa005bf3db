"""
Shared test fixtures.
"""

from typing import Any

import pytest

import repo_spark.config
from repo_spark.errors import AnalysisError, ErrorKind
from repo_spark.vcs.base import BaseVCSProvider


class FakeProvider(BaseVCSProvider):
    """In-memory provider serving canned listings and recording calls."""

    def __init__(
        self,
        commits: dict[str, list[dict[str, Any]]] | None = None,
        user: dict[str, Any] | None = None,
        repos: list[dict[str, Any]] | None = None,
        details: dict[str, dict[str, Any]] | None = None,
        failing_details: set[str] | None = None,
        list_errors: dict[str, Exception] | None = None,
    ):
        self.commits = commits or {}
        self.user = user
        self.repos = repos or []
        self.details = details or {}
        self.failing_details = failing_details or set()
        self.list_errors = list_errors or {}
        self.list_calls: list[dict[str, Any]] = []
        self.detail_calls: list[str] = []

    @staticmethod
    def entry(
        sha: str,
        date: str | None,
        message: str = "update",
        name: str = "Alice",
        email: str = "alice@example.com",
        committer_date: str | None = None,
    ) -> dict[str, Any]:
        return {
            "sha": sha,
            "commit": {
                "message": message,
                "author": {"name": name, "email": email, "date": date},
                "committer": {"name": name, "email": email, "date": committer_date},
            },
        }

    def get_platform_name(self) -> str:
        return "fake"

    def get_repository_url(self, owner: str, repo: str) -> str:
        return f"https://github.com/{owner}/{repo}"

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        if repo not in self.commits:
            raise AnalysisError(
                ErrorKind.NOT_FOUND, f"Repository {owner}/{repo} not found"
            )
        return {"name": repo, "owner": {"login": owner}}

    def get_user(self, username: str) -> dict[str, Any]:
        if self.user is None:
            raise AnalysisError(ErrorKind.NOT_FOUND, f"User {username} not found")
        return self.user

    def list_user_repositories(
        self, username: str, max_repos: int = 10
    ) -> list[dict[str, Any]]:
        return self.repos[:max_repos]

    def list_commits(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: int = 50,
        since: str | None = None,
    ) -> list[dict[str, Any]]:
        self.list_calls.append(
            {"repo": repo, "page": page, "per_page": per_page, "since": since}
        )
        if repo in self.list_errors:
            raise self.list_errors[repo]
        entries = self.commits.get(repo, [])
        start = (page - 1) * per_page
        return entries[start : start + per_page]

    def get_commit(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        self.detail_calls.append(sha)
        if sha in self.failing_details:
            raise AnalysisError(ErrorKind.RATE_LIMITED, "secondary rate limit")
        return self.details.get(
            sha,
            {"stats": {"additions": 10, "deletions": 2}, "files": [{"filename": "a.py"}]},
        )


@pytest.fixture
def fake_provider():
    """The FakeProvider class, for building providers inside tests."""
    return FakeProvider


@pytest.fixture(autouse=True)
def restore_config_globals():
    """Reset the module-level config overrides after each test."""
    saved = (
        repo_spark.config._STORE_DIR,
        repo_spark.config._RESULT_TTL,
        repo_spark.config.VERIFY_SSL,
    )
    yield
    (
        repo_spark.config._STORE_DIR,
        repo_spark.config._RESULT_TTL,
        repo_spark.config.VERIFY_SSL,
    ) = saved
