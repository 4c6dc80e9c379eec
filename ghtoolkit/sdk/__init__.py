"""GitHub toolkit SDK: rate-limit aware clients for the GitHub REST API."""

from __future__ import annotations

from ghtoolkit.sdk.client import AsyncGitHubClient, GitHubClient
from ghtoolkit.sdk.exceptions import (
    AuthenticationError,
    GitHubError,
    NotFoundError,
    QuotaExceededError,
    RateLimitError,
    RetryAfterError,
    ValidationError,
)
from ghtoolkit.sdk.models import RateLimitPolicy, RateLimitSnapshot, parse_retry_after
from ghtoolkit.sdk.rate_limiter import RateLimitCoordinator
from ghtoolkit.sdk.schemas import RateLimitResource, RateLimitStatus

__all__ = [
    "AsyncGitHubClient",
    "GitHubClient",
    "GitHubError",
    "AuthenticationError",
    "RateLimitError",
    "QuotaExceededError",
    "RetryAfterError",
    "NotFoundError",
    "ValidationError",
    "RateLimitCoordinator",
    "RateLimitPolicy",
    "RateLimitSnapshot",
    "RateLimitResource",
    "RateLimitStatus",
    "parse_retry_after",
]
