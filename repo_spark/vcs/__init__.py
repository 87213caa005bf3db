"""
Hosting platform providers for repo-spark.

Each platform is registered with its provider class and the URL hosts it
serves, so a request URL can be matched to the provider that can analyze it.
"""

from typing import NamedTuple

from repo_spark.vcs.base import BaseVCSProvider
from repo_spark.vcs.github import GITHUB_HOSTS, GitHubProvider

__all__ = [
    "BaseVCSProvider",
    "GitHubProvider",
    "get_vcs_provider",
    "platform_for_host",
    "register_vcs_provider",
]


class _Registration(NamedTuple):
    provider_class: type[BaseVCSProvider]
    hosts: tuple[str, ...]


_PROVIDERS: dict[str, _Registration] = {
    "github": _Registration(GitHubProvider, GITHUB_HOSTS),
}


def get_vcs_provider(platform: str = "github", **kwargs) -> BaseVCSProvider:
    """
    Instantiate the provider registered for ``platform``.

    Args:
        platform: Platform name, case-insensitive. Default: 'github'
        **kwargs: Provider-specific configuration (token, cache, stats, ...)

    Raises:
        ValueError: If platform is not supported
    """
    registration = _PROVIDERS.get(platform.lower())
    if registration is None:
        supported = ", ".join(sorted(_PROVIDERS))
        raise ValueError(
            f"Unsupported VCS platform: {platform}. Supported platforms: {supported}"
        )
    return registration.provider_class(**kwargs)


def register_vcs_provider(
    platform: str,
    provider_class: type[BaseVCSProvider],
    hosts: tuple[str, ...] = (),
) -> None:
    """
    Register an additional provider and the URL hosts it serves.

    Raises:
        TypeError: If provider_class doesn't inherit from BaseVCSProvider
    """
    if not issubclass(provider_class, BaseVCSProvider):
        raise TypeError(
            f"Provider class must inherit from BaseVCSProvider, "
            f"got {type(provider_class)}"
        )
    _PROVIDERS[platform.lower()] = _Registration(
        provider_class, tuple(host.lower() for host in hosts)
    )


def platform_for_host(hostname: str | None) -> str | None:
    """Name of the platform serving ``hostname``, or None if none does."""
    if not hostname:
        return None
    hostname = hostname.lower()
    for platform, registration in _PROVIDERS.items():
        if hostname in registration.hosts:
            return platform
    return None
