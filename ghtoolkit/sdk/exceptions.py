"""Exception hierarchy for the GitHub toolkit SDK."""

from __future__ import annotations

from ghtoolkit.sdk.models import RateLimitSnapshot


class GitHubError(Exception):
    """Base exception for all GitHub API errors."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class AuthenticationError(GitHubError):
    """Raised on 401 responses and on 403s that are not rate-limit related."""


class RateLimitError(GitHubError):
    """Raised when the quota is exhausted (429, or 403 with no remaining)."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        snapshot: RateLimitSnapshot | None = None,
    ) -> None:
        super().__init__(status_code, detail)
        self.snapshot = snapshot


class QuotaExceededError(RateLimitError):
    """The tracked quota is exhausted and the policy says not to wait."""

    def __init__(self, snapshot: RateLimitSnapshot) -> None:
        detail = (
            f"Rate limit exceeded. Resets at {snapshot.reset_at.isoformat()}. "
            f"Remaining: {snapshot.remaining}/{snapshot.limit}"
        )
        super().__init__(429, detail, snapshot)


class RetryAfterError(RateLimitError):
    """The server asked the caller to back off for ``retry_after`` seconds."""

    def __init__(
        self,
        retry_after: float,
        snapshot: RateLimitSnapshot | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(
            429,
            f"Rate limit exceeded. Retry after {int(retry_after)} seconds",
            snapshot,
        )


class NotFoundError(GitHubError):
    """Raised on 404 responses."""


class ValidationError(GitHubError):
    """Raised on 400 or 422 responses."""
