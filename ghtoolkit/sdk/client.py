"""Async and sync HTTP clients for the GitHub REST API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from ghtoolkit.sdk.exceptions import (
    AuthenticationError,
    GitHubError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from ghtoolkit.sdk.models import RateLimitPolicy, RateLimitSnapshot
from ghtoolkit.sdk.rate_limiter import RateLimitCoordinator
from ghtoolkit.sdk.schemas import RateLimitStatus
from ghtoolkit.services.request_context import record_request_id

if TYPE_CHECKING:
    from ghtoolkit.config import Settings

DEFAULT_BASE_URL = "https://api.github.com"
API_VERSION = "2022-11-28"

# Maps HTTP status codes to exception classes.
_STATUS_MAP: dict[int, type[GitHubError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthenticationError,
    404: NotFoundError,
    422: ValidationError,
    429: RateLimitError,
}


def _build_exception(
    status_code: int,
    detail: str,
    snapshot: RateLimitSnapshot | None,
    headers: httpx.Headers,
) -> GitHubError:
    """Construct the appropriate exception for *status_code*."""
    exc_cls = _STATUS_MAP.get(status_code, GitHubError)
    # GitHub reports primary rate-limit violations as 403 with no remaining quota
    if status_code == 403 and headers.get("x-ratelimit-remaining") == "0":
        exc_cls = RateLimitError
    if exc_cls is RateLimitError:
        return RateLimitError(status_code, detail, snapshot)
    return exc_cls(status_code, detail)


def _parse_detail(response: httpx.Response) -> str:
    """Extract the ``message`` field from a GitHub JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or response.text
    return response.text


def _default_headers(token: str | None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": API_VERSION,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


# ---------------------------------------------------------------------------
# Async client
# ---------------------------------------------------------------------------


class AsyncGitHubClient:
    """Async client for the GitHub API (backed by ``httpx.AsyncClient``).

    Every response feeds the client's :class:`RateLimitCoordinator`.  With
    ``proactive`` set, requests are gated by it before they are sent; a 429
    is handed to the coordinator and the request re-issued once.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        timeout: float = 30.0,
        policy: RateLimitPolicy | None = None,
        *,
        proactive: bool = True,
        rate_limiter: RateLimitCoordinator | None = None,
        _transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        kwargs: dict[str, Any] = {
            "base_url": base_url,
            "headers": _default_headers(token),
            "timeout": timeout,
        }
        if _transport is not None:
            kwargs["transport"] = _transport
        self._client = httpx.AsyncClient(**kwargs)
        self.proactive = proactive
        self.rate_limiter = (
            rate_limiter if rate_limiter is not None else RateLimitCoordinator(policy)
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> AsyncGitHubClient:
        return cls(
            settings.github_api_url,
            token=settings.github_token or None,
            timeout=settings.request_timeout,
            policy=RateLimitPolicy.from_settings(settings),
            proactive=settings.rate_limit_proactive,
            **kwargs,
        )

    # -- context manager -----------------------------------------------------

    async def __aenter__(self) -> AsyncGitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # -- internal ------------------------------------------------------------

    def _observe(self, response: httpx.Response) -> None:
        self.rate_limiter.metrics.inc_request(response.status_code)
        record_request_id(response.headers)
        self.rate_limiter.update(response.headers)

    def _handle_response(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            detail = _parse_detail(response)
            raise _build_exception(
                response.status_code,
                detail,
                self.rate_limiter.current_snapshot(),
                response.headers,
            )

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        resp = await self._client.request(method, path, **kwargs)
        self._observe(resp)
        return resp

    # -- public methods ------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        gated: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request through the rate-limit coordinator.

        Raises a :class:`GitHubError` subclass for error statuses.
        """
        if gated and self.proactive:
            await self.rate_limiter.should_proceed()

        resp = await self._send(method, path, **kwargs)
        if resp.status_code == 429:
            retry_after = resp.headers.get("retry-after")
            await self.rate_limiter.handle_exhaustion_signal(retry_after)
            self.rate_limiter.metrics.inc_retry()
            resp = await self._send(method, path, **kwargs)

        self._handle_response(resp)
        return resp

    async def get_json(
        self, path: str, params: dict[str, Any] | None = None
    ) -> Any:
        resp = await self.request("GET", path, params=params)
        return resp.json()

    async def rate_limit_status(self) -> RateLimitStatus:
        # /rate_limit does not count against the quota
        resp = await self.request("GET", "/rate_limit", gated=False)
        return RateLimitStatus.model_validate(resp.json())

    def current_rate_limit(self) -> RateLimitSnapshot | None:
        return self.rate_limiter.current_snapshot()

    async def check_rate_limit(self) -> None:
        await self.rate_limiter.should_proceed()


# ---------------------------------------------------------------------------
# Sync client
# ---------------------------------------------------------------------------


class GitHubClient:
    """Synchronous client for the GitHub API (backed by ``httpx.Client``)."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        timeout: float = 30.0,
        policy: RateLimitPolicy | None = None,
        *,
        proactive: bool = True,
        rate_limiter: RateLimitCoordinator | None = None,
        _transport: httpx.BaseTransport | None = None,
    ) -> None:
        kwargs: dict[str, Any] = {
            "base_url": base_url,
            "headers": _default_headers(token),
            "timeout": timeout,
        }
        if _transport is not None:
            kwargs["transport"] = _transport
        self._client = httpx.Client(**kwargs)
        self.proactive = proactive
        self.rate_limiter = (
            rate_limiter if rate_limiter is not None else RateLimitCoordinator(policy)
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> GitHubClient:
        return cls(
            settings.github_api_url,
            token=settings.github_token or None,
            timeout=settings.request_timeout,
            policy=RateLimitPolicy.from_settings(settings),
            proactive=settings.rate_limit_proactive,
            **kwargs,
        )

    # -- context manager -----------------------------------------------------

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # -- internal ------------------------------------------------------------

    def _observe(self, response: httpx.Response) -> None:
        self.rate_limiter.metrics.inc_request(response.status_code)
        record_request_id(response.headers)
        self.rate_limiter.update(response.headers)

    def _handle_response(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            detail = _parse_detail(response)
            raise _build_exception(
                response.status_code,
                detail,
                self.rate_limiter.current_snapshot(),
                response.headers,
            )

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        resp = self._client.request(method, path, **kwargs)
        self._observe(resp)
        return resp

    # -- public methods ------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        gated: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        if gated and self.proactive:
            self.rate_limiter.should_proceed_sync()

        resp = self._send(method, path, **kwargs)
        if resp.status_code == 429:
            retry_after = resp.headers.get("retry-after")
            self.rate_limiter.handle_exhaustion_signal_sync(retry_after)
            self.rate_limiter.metrics.inc_retry()
            resp = self._send(method, path, **kwargs)

        self._handle_response(resp)
        return resp

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        resp = self.request("GET", path, params=params)
        return resp.json()

    def rate_limit_status(self) -> RateLimitStatus:
        resp = self.request("GET", "/rate_limit", gated=False)
        return RateLimitStatus.model_validate(resp.json())

    def current_rate_limit(self) -> RateLimitSnapshot | None:
        return self.rate_limiter.current_snapshot()

    def check_rate_limit(self) -> None:
        self.rate_limiter.should_proceed_sync()
