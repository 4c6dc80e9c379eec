from datetime import datetime, timedelta, timezone

import pytest

from ghtoolkit.services.request_context import request_id_var

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def rate_headers(
    limit: int = 60,
    remaining: int = 59,
    used: int = 1,
    reset_in: float = 30,
    **extra: str,
) -> dict[str, str]:
    """``X-RateLimit-*`` headers with the reset relative to ``NOW``."""
    headers = {
        "x-ratelimit-limit": str(limit),
        "x-ratelimit-remaining": str(remaining),
        "x-ratelimit-used": str(used),
        "x-ratelimit-reset": str(int((NOW + timedelta(seconds=reset_in)).timestamp())),
    }
    headers.update(extra)
    return headers


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def _clear_request_id():
    """Reset the GitHub request ID between every test."""
    token = request_id_var.set("")
    yield
    request_id_var.reset(token)
