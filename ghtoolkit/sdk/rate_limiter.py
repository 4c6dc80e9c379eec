"""Client-side rate-limit coordination.

A :class:`RateLimitCoordinator` tracks the latest quota snapshot reported by
GitHub and decides, before each request, whether the caller may proceed,
must wait for the window to reset, or must fail.

State lives behind a ``threading.Lock`` so one coordinator can be shared by
threads using the sync client and by tasks using the async client.  The lock
only guards reading and replacing the snapshot; it is released before any
wait so a sleeping caller never stalls ``update`` calls from other in-flight
responses.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Mapping

from ghtoolkit.sdk.exceptions import QuotaExceededError, RetryAfterError
from ghtoolkit.sdk.models import (
    DEFAULT_RESOURCE,
    RateLimitPolicy,
    RateLimitSnapshot,
    parse_retry_after,
)
from ghtoolkit.services.metrics import MetricsCollector

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RateLimitCoordinator:
    """Thread-safe holder of the current snapshot plus an immutable policy."""

    def __init__(
        self,
        policy: RateLimitPolicy | None = None,
        *,
        default_resource: str = DEFAULT_RESOURCE,
        metrics: MetricsCollector | None = None,
        _sleep: Callable[[float], Awaitable[None]] | None = None,
        _sync_sleep: Callable[[float], None] | None = None,
        _clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._policy = policy if policy is not None else RateLimitPolicy()
        self._default_resource = default_resource
        self.metrics = metrics if metrics is not None else MetricsCollector()
        self._sleep = _sleep if _sleep is not None else asyncio.sleep
        self._sync_sleep = _sync_sleep if _sync_sleep is not None else time.sleep
        self._clock = _clock if _clock is not None else _utcnow
        self._snapshot: RateLimitSnapshot | None = None
        self._lock = threading.Lock()

    @property
    def policy(self) -> RateLimitPolicy:
        return self._policy

    # -- state ---------------------------------------------------------------

    def update(self, headers: Mapping[str, str]) -> RateLimitSnapshot | None:
        """Replace the current snapshot with one parsed from *headers*.

        Headers without a complete ``X-RateLimit-*`` set leave the current
        snapshot untouched.  Returns the new snapshot, or *None*.
        """
        snapshot = RateLimitSnapshot.from_headers(headers, self._default_resource)
        if snapshot is None:
            return None

        with self._lock:
            self._snapshot = snapshot

        warned = snapshot.usage_percentage >= self._policy.warning_threshold * 100
        if warned:
            logger.warning(
                "Rate limit warning: %d/%d requests remaining (%.1f%% used)",
                snapshot.remaining,
                snapshot.limit,
                snapshot.usage_percentage,
                extra={"resource": snapshot.resource},
            )
        self.metrics.inc_update(warned)
        return snapshot

    def current_snapshot(self) -> RateLimitSnapshot | None:
        with self._lock:
            return self._snapshot

    def clear(self) -> None:
        """Forget the tracked snapshot."""
        with self._lock:
            self._snapshot = None

    # -- decisions -------------------------------------------------------------

    def _proceed_delay(self) -> float:
        """Seconds to wait before proceeding; raises when the caller must fail."""
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None or not snapshot.is_exhausted:
            return 0.0

        if not self._policy.auto_retry:
            self.metrics.inc_quota_exceeded()
            raise QuotaExceededError(snapshot)

        return max(0.0, snapshot.time_until_reset(self._clock()))

    def _exhaustion_delay(self, retry_after: str | None) -> float:
        """Seconds to wait after an out-of-band 429.

        Raises :class:`RetryAfterError` when the policy says to signal.
        """
        seconds = parse_retry_after(retry_after, self._clock())
        if self._policy.auto_retry:
            self.metrics.inc_exhaustion_signal(signaled=False)
            if seconds is None:
                return self._policy.default_retry_after
            return seconds

        if self._policy.fail_fast:
            self.metrics.inc_exhaustion_signal(signaled=True)
            if seconds is None:
                seconds = self._policy.default_retry_after
            raise RetryAfterError(seconds, self.current_snapshot())

        self.metrics.inc_exhaustion_signal(signaled=False)
        return 0.0

    def _announce_wait(self, seconds: float, reason: str) -> None:
        logger.info("%s. Waiting %d seconds...", reason, int(seconds))
        self.metrics.record_wait(seconds)

    # -- async API -------------------------------------------------------------

    async def should_proceed(self) -> None:
        """Gate an outgoing request against the tracked quota.

        Returns immediately while quota remains.  When it is exhausted,
        either waits until the window resets (``auto_retry``) or raises
        :class:`QuotaExceededError`.
        """
        delay = self._proceed_delay()
        if delay > 0:
            self._announce_wait(delay, "Rate limit exceeded")
            await self._sleep(delay)

    async def handle_exhaustion_signal(self, retry_after: str | None) -> None:
        """React to a "too many requests" response.

        Returning normally means the caller should re-issue the request.
        """
        delay = self._exhaustion_delay(retry_after)
        if delay > 0:
            self._announce_wait(delay, "Rate limit exceeded (429)")
            await self._sleep(delay)

    # -- blocking API ----------------------------------------------------------

    def should_proceed_sync(self) -> None:
        """Blocking variant of :meth:`should_proceed`."""
        delay = self._proceed_delay()
        if delay > 0:
            self._announce_wait(delay, "Rate limit exceeded")
            self._sync_sleep(delay)

    def handle_exhaustion_signal_sync(self, retry_after: str | None) -> None:
        """Blocking variant of :meth:`handle_exhaustion_signal`."""
        delay = self._exhaustion_delay(retry_after)
        if delay > 0:
            self._announce_wait(delay, "Rate limit exceeded (429)")
            self._sync_sleep(delay)
