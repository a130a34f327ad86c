"""Shared HTTP client handling and retrying requests against the GitHub API."""

import time

import httpx
from rich.console import Console

from repo_vitals.config import get_github_token, get_retries, get_verify_ssl

console = Console(stderr=True)

DEFAULT_ACCEPT = "application/vnd.github.v3+json"

# 403 is GitHub's secondary rate limit response
RETRYABLE_STATUS_CODES = {403, 502, 503, 504}
MAX_BACKOFF_MS = 8000

_http_client: httpx.Client | None = None
_http_client_verify_ssl: bool | None = None


def _get_http_client() -> httpx.Client:
    """Get or create a global HTTP client with connection pooling.

    Recreates the client if SSL verification setting has changed.
    """
    global _http_client, _http_client_verify_ssl
    current_verify_ssl = get_verify_ssl()

    # Recreate client if setting changed or client is closed/None
    if (
        _http_client is None
        or _http_client.is_closed
        or _http_client_verify_ssl != current_verify_ssl
    ):
        if _http_client is not None and not _http_client.is_closed:
            _http_client.close()

        _http_client = httpx.Client(
            verify=current_verify_ssl,
            timeout=30,
            follow_redirects=True,
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
        )
        _http_client_verify_ssl = current_verify_ssl
    return _http_client


def close_http_client():
    """Close the global HTTP client. Call this when shutting down."""
    global _http_client, _http_client_verify_ssl
    if _http_client is not None and not _http_client.is_closed:
        _http_client.close()
        _http_client = None
        _http_client_verify_ssl = None


def get_headers(accept: str = DEFAULT_ACCEPT) -> dict[str, str]:
    """Build request headers, adding the bearer credential when one is set."""
    headers = {"Accept": accept}
    token = get_github_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or status_code >= 500


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before retrying after the given zero-based attempt."""
    return min(1000 * 2**attempt, MAX_BACKOFF_MS) / 1000


def fetch_with_retry(
    url: str,
    retries: int | None = None,
    headers: dict[str, str] | None = None,
    params: dict[str, str | int] | None = None,
) -> httpx.Response:
    """
    GET a URL, retrying rate-limit and server errors with exponential backoff.

    Args:
        url: Absolute URL of the resource.
        retries: Number of retries after the first attempt (default:
            the configured retry budget).
        headers: Request headers; defaults to get_headers().
        params: Query string parameters.

    Returns:
        The first non-retryable response, or the last response once the
        retry budget is exhausted. Status interpretation is up to the caller.

    Raises:
        httpx.TransportError: If the final attempt fails at the network level.
    """
    if retries is None:
        retries = get_retries()
    request_headers = headers if headers is not None else get_headers()
    client = _get_http_client()

    for attempt in range(retries + 1):
        try:
            response = client.get(url, headers=request_headers, params=params)
        except httpx.TransportError as e:
            if attempt >= retries:
                console.print(
                    f"[red]❌ Request failed after {retries} retries: {e}[/red]"
                )
                raise
            delay = backoff_delay(attempt)
            console.print(
                f"[yellow]⚠️  Network error, retrying in {delay:.0f}s... "
                f"(attempt {attempt + 1}/{retries})[/yellow]"
            )
            time.sleep(delay)
            continue

        if is_retryable_status(response.status_code) and attempt < retries:
            delay = backoff_delay(attempt)
            console.print(
                f"[yellow]⚠️  {response.status_code} error, retrying in {delay:.0f}s... "
                f"(attempt {attempt + 1}/{retries})[/yellow]"
            )
            time.sleep(delay)
            continue

        return response

    # Only reachable with a negative retry budget
    raise ValueError(f"Invalid retry budget: {retries}")
