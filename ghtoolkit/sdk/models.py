"""Rate-limit value types shared by the coordinator and the clients."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from ghtoolkit.config import Settings

DEFAULT_RESOURCE = "core"
DEFAULT_RETRY_AFTER = 60.0

_LIMIT = "x-ratelimit-limit"
_REMAINING = "x-ratelimit-remaining"
_USED = "x-ratelimit-used"
_RESET = "x-ratelimit-reset"
_RESOURCE = "x-ratelimit-resource"


def normalize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of *headers* with every key lower-cased."""
    return {str(key).lower(): value for key, value in headers.items()}


def _parse_count(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _parse_epoch(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    try:
        seconds = float(raw)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


@dataclass(frozen=True)
class RateLimitSnapshot:
    """One measurement of the remote quota, parsed from response headers."""

    limit: int
    remaining: int
    used: int
    reset_at: datetime
    resource: str = DEFAULT_RESOURCE

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, str],
        default_resource: str = DEFAULT_RESOURCE,
    ) -> RateLimitSnapshot | None:
        """Parse ``X-RateLimit-*`` headers, returning *None* unless all four
        numeric fields are present and valid.

        Header names are matched case-insensitively.  The optional
        ``X-RateLimit-Resource`` header overrides *default_resource*.
        """
        lowered = normalize_headers(headers)
        limit = _parse_count(lowered.get(_LIMIT))
        remaining = _parse_count(lowered.get(_REMAINING))
        used = _parse_count(lowered.get(_USED))
        reset_at = _parse_epoch(lowered.get(_RESET))
        if limit is None or remaining is None or used is None or reset_at is None:
            return None
        if limit < 0 or remaining < 0:
            return None
        return cls(
            limit=limit,
            remaining=remaining,
            used=used,
            reset_at=reset_at,
            resource=lowered.get(_RESOURCE) or default_resource,
        )

    @property
    def is_exhausted(self) -> bool:
        return self.remaining == 0

    @property
    def usage_fraction(self) -> float:
        if self.limit <= 0:
            return 0.0
        return self.used / self.limit

    @property
    def usage_percentage(self) -> float:
        return self.usage_fraction * 100

    def time_until_reset(self, now: datetime | None = None) -> float:
        """Seconds until the window resets; negative once it has passed."""
        if now is None:
            now = datetime.now(timezone.utc)
        return (self.reset_at - now).total_seconds()


@dataclass(frozen=True)
class RateLimitPolicy:
    """How a coordinator reacts to quota pressure and exhaustion.

    ``auto_retry`` takes precedence over ``fail_fast``: when it is set the
    coordinator waits instead of raising on both the tracked-quota and the
    out-of-band paths.
    """

    auto_retry: bool = False
    max_retries: int = 3
    fail_fast: bool = True
    warning_threshold: float = 0.8
    default_retry_after: float = DEFAULT_RETRY_AFTER

    def __post_init__(self) -> None:
        if not 0.0 <= self.warning_threshold <= 1.0:
            raise ValueError(
                f"warning_threshold must be within [0.0, 1.0], "
                f"got {self.warning_threshold}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if not self.default_retry_after > 0:
            raise ValueError(
                f"default_retry_after must be positive, "
                f"got {self.default_retry_after}"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> RateLimitPolicy:
        return cls(
            auto_retry=settings.rate_limit_auto_retry,
            max_retries=settings.rate_limit_max_retries,
            fail_fast=settings.rate_limit_fail_fast,
            warning_threshold=settings.rate_limit_warning_threshold,
            default_retry_after=settings.rate_limit_default_retry_after,
        )


def parse_retry_after(
    value: str | None, now: datetime | None = None
) -> float | None:
    """Parse a ``Retry-After`` value into seconds.

    Accepts delay-seconds or an HTTP-date; returns *None* for anything else.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        if math.isfinite(seconds) and seconds >= 0:
            return seconds
        return None

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    if now is None:
        now = datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())
