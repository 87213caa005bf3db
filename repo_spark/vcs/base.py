"""
Base classes and data structures for VCS providers.

Providers return the hosting platform's JSON objects as plain dicts; the
ingestion and user-analysis layers read only the fields documented on each
method.
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseVCSProvider(ABC):
    """Abstract interface every hosting platform provider implements."""

    @abstractmethod
    def get_platform_name(self) -> str:
        """Return the platform identifier (e.g. 'github')."""

    @abstractmethod
    def get_repository_url(self, owner: str, repo: str) -> str:
        """Construct the web URL of a repository."""

    @abstractmethod
    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        """
        Fetch repository metadata.

        Raises:
            AnalysisError: NOT_FOUND when the repository does not exist.
        """

    @abstractmethod
    def get_user(self, username: str) -> dict[str, Any]:
        """
        Fetch a user profile.

        Fields read downstream: login, name, avatar_url, followers, following,
        public_repos, created_at, hireable, company, location, bio.
        """

    @abstractmethod
    def list_user_repositories(
        self, username: str, max_repos: int = 10
    ) -> list[dict[str, Any]]:
        """
        List up to ``max_repos`` repositories owned by a user, most recently
        updated first.

        Fields read downstream: name, full_name, fork, archived,
        stargazers_count, forks_count, language, description, topics, license,
        has_wiki, has_pages, has_downloads, has_issues, updated_at.
        """

    @abstractmethod
    def list_commits(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: int = 50,
        since: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List one page of commits, most recent first.

        Each entry has ``sha`` and a ``commit`` object with ``message``,
        ``author`` and ``committer`` (each with ``name``, ``email``, ``date``).
        """

    @abstractmethod
    def get_commit(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        """
        Fetch a single commit with diff statistics.

        The result carries ``stats`` (``additions``, ``deletions``) and
        ``files`` (list of changed files).
        """
