"""Process-wide HTTP client for the hosting platform APIs."""

import httpx

from repo_spark import __version__
from repo_spark.config import get_verify_ssl

USER_AGENT = f"repo-spark/{__version__}"

# Connection failures are retried by the transport; HTTP error statuses are not
CONNECT_RETRIES = 2
TIMEOUT = httpx.Timeout(30.0, connect=10.0)

_http_client: httpx.Client | None = None
_http_client_verify_ssl: bool | None = None


def _build_client(verify_ssl: bool) -> httpx.Client:
    return httpx.Client(
        transport=httpx.HTTPTransport(verify=verify_ssl, retries=CONNECT_RETRIES),
        headers={"User-Agent": USER_AGENT},
        timeout=TIMEOUT,
        follow_redirects=True,
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
    )


def _get_http_client() -> httpx.Client:
    """Return the shared client, rebuilding it when SSL verification changes."""
    global _http_client, _http_client_verify_ssl
    verify_ssl = get_verify_ssl()

    if _http_client is not None and not _http_client.is_closed:
        if _http_client_verify_ssl == verify_ssl:
            return _http_client
        _http_client.close()

    _http_client = _build_client(verify_ssl)
    _http_client_verify_ssl = verify_ssl
    return _http_client


def close_http_client() -> None:
    """Close the shared client. The next request opens a new one."""
    global _http_client, _http_client_verify_ssl
    if _http_client is not None and not _http_client.is_closed:
        _http_client.close()
    _http_client = None
    _http_client_verify_ssl = None
