"""Thread-safe in-memory rate-limit and request metrics."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass
class MetricsCollector:
    """Counts rate-limit events and client requests for one coordinator.

    Thread-safe via a single ``threading.Lock``.
    """

    # Coordinator
    snapshot_updates: int = field(default=0, init=False)
    threshold_warnings: int = field(default=0, init=False)
    waits: int = field(default=0, init=False)
    seconds_waited: float = field(default=0.0, init=False)
    quota_exceeded: int = field(default=0, init=False)
    retry_after_signals: int = field(default=0, init=False)
    exhaustion_signals: int = field(default=0, init=False)

    # Client
    total_requests: int = field(default=0, init=False)
    status_codes: dict[int, int] = field(default_factory=dict, init=False)
    retries: int = field(default=0, init=False)

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _start_time: float = field(default_factory=time.monotonic, init=False, repr=False)

    # -- Coordinator helpers -----------------------------------------------

    def inc_update(self, warned: bool) -> None:
        with self._lock:
            self.snapshot_updates += 1
            if warned:
                self.threshold_warnings += 1

    def record_wait(self, seconds: float) -> None:
        with self._lock:
            self.waits += 1
            self.seconds_waited += seconds

    def inc_quota_exceeded(self) -> None:
        with self._lock:
            self.quota_exceeded += 1

    def inc_exhaustion_signal(self, signaled: bool) -> None:
        with self._lock:
            self.exhaustion_signals += 1
            if signaled:
                self.retry_after_signals += 1

    # -- Client helpers ----------------------------------------------------

    def inc_request(self, status_code: int) -> None:
        with self._lock:
            self.total_requests += 1
            self.status_codes[status_code] = self.status_codes.get(status_code, 0) + 1

    def inc_retry(self) -> None:
        with self._lock:
            self.retries += 1

    # -- Snapshot / reset --------------------------------------------------

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "uptime_seconds": round(time.monotonic() - self._start_time, 2),
                "rate_limit": {
                    "updates": self.snapshot_updates,
                    "warnings": self.threshold_warnings,
                    "waits": self.waits,
                    "seconds_waited": round(self.seconds_waited, 2),
                    "quota_exceeded": self.quota_exceeded,
                    "exhaustion_signals": self.exhaustion_signals,
                    "retry_after_signals": self.retry_after_signals,
                },
                "requests": {
                    "total": self.total_requests,
                    "status_codes": dict(self.status_codes),
                    "retries": self.retries,
                },
            }

    def reset(self) -> None:
        with self._lock:
            self.snapshot_updates = 0
            self.threshold_warnings = 0
            self.waits = 0
            self.seconds_waited = 0.0
            self.quota_exceeded = 0
            self.retry_after_signals = 0
            self.exhaustion_signals = 0
            self.total_requests = 0
            self.status_codes.clear()
            self.retries = 0
            self._start_time = time.monotonic()
