"""Tests for snapshot parsing, policy validation and Retry-After parsing."""

from __future__ import annotations

from datetime import timedelta, timezone
from email.utils import format_datetime

import pytest

from conftest import NOW, rate_headers
from ghtoolkit.config import Settings
from ghtoolkit.sdk.models import (
    RateLimitPolicy,
    RateLimitSnapshot,
    normalize_headers,
    parse_retry_after,
)

_REQUIRED = (
    "x-ratelimit-limit",
    "x-ratelimit-remaining",
    "x-ratelimit-used",
    "x-ratelimit-reset",
)


# ---------------------------------------------------------------------------
# RateLimitSnapshot.from_headers
# ---------------------------------------------------------------------------


class TestSnapshotFromHeaders:
    def test_lowercase_headers(self):
        snap = RateLimitSnapshot.from_headers(rate_headers(limit=5000, remaining=4990, used=10))
        assert snap is not None
        assert snap.limit == 5000
        assert snap.remaining == 4990
        assert snap.used == 10
        assert snap.reset_at == NOW + timedelta(seconds=30)
        assert snap.reset_at.tzinfo == timezone.utc
        assert snap.resource == "core"

    def test_capitalized_headers(self):
        headers = {
            "X-RateLimit-Limit": "60",
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Used": "60",
            "X-RateLimit-Reset": str(int(NOW.timestamp())),
            "X-RateLimit-Resource": "search",
        }
        snap = RateLimitSnapshot.from_headers(headers)
        assert snap is not None
        assert snap.remaining == 0
        assert snap.resource == "search"
        assert snap.reset_at == NOW

    def test_mixed_case_headers(self):
        headers = {
            "X-RATELIMIT-LIMIT": "60",
            "x-RateLimit-remaining": "10",
            "X-Ratelimit-Used": "50",
            "x-ratelimit-RESET": str(int(NOW.timestamp())),
        }
        assert RateLimitSnapshot.from_headers(headers) is not None

    def test_default_resource_used_when_absent(self):
        snap = RateLimitSnapshot.from_headers(rate_headers(), default_resource="graphql")
        assert snap is not None
        assert snap.resource == "graphql"

    def test_resource_header_overrides_default(self):
        headers = rate_headers(**{"x-ratelimit-resource": "search"})
        snap = RateLimitSnapshot.from_headers(headers, default_resource="graphql")
        assert snap.resource == "search"

    @pytest.mark.parametrize("missing", _REQUIRED)
    def test_missing_field_yields_none(self, missing):
        headers = rate_headers()
        del headers[missing]
        assert RateLimitSnapshot.from_headers(headers) is None

    @pytest.mark.parametrize("field", _REQUIRED)
    def test_malformed_field_yields_none(self, field):
        headers = rate_headers()
        headers[field] = "not-a-number"
        assert RateLimitSnapshot.from_headers(headers) is None

    def test_empty_headers(self):
        assert RateLimitSnapshot.from_headers({}) is None

    def test_negative_remaining_rejected(self):
        assert RateLimitSnapshot.from_headers(rate_headers(remaining=-1)) is None

    def test_negative_limit_rejected(self):
        assert RateLimitSnapshot.from_headers(rate_headers(limit=-5)) is None

    def test_fractional_reset_accepted(self):
        headers = rate_headers()
        headers["x-ratelimit-reset"] = "1767268800.5"
        snap = RateLimitSnapshot.from_headers(headers)
        assert snap is not None
        assert snap.reset_at.microsecond == 500000

    def test_infinite_reset_rejected(self):
        headers = rate_headers()
        headers["x-ratelimit-reset"] = "inf"
        assert RateLimitSnapshot.from_headers(headers) is None

    def test_frozen(self):
        snap = RateLimitSnapshot.from_headers(rate_headers())
        with pytest.raises(AttributeError):
            snap.remaining = 0  # type: ignore[misc]


class TestSnapshotDerived:
    def test_is_exhausted(self):
        assert RateLimitSnapshot.from_headers(rate_headers(remaining=0)).is_exhausted
        assert not RateLimitSnapshot.from_headers(rate_headers(remaining=1)).is_exhausted

    def test_usage_fraction(self):
        snap = RateLimitSnapshot.from_headers(rate_headers(limit=60, used=45))
        assert snap.usage_fraction == pytest.approx(0.75)
        assert snap.usage_percentage == pytest.approx(75.0)

    def test_usage_fraction_zero_limit(self):
        snap = RateLimitSnapshot.from_headers(rate_headers(limit=0, remaining=0, used=3))
        assert snap.usage_fraction == 0.0

    def test_time_until_reset(self):
        snap = RateLimitSnapshot.from_headers(rate_headers(reset_in=30))
        assert snap.time_until_reset(NOW) == pytest.approx(30.0)

    def test_time_until_reset_negative_once_past(self):
        snap = RateLimitSnapshot.from_headers(rate_headers(reset_in=-10))
        assert snap.time_until_reset(NOW) == pytest.approx(-10.0)


def test_normalize_headers_lowercases_keys():
    assert normalize_headers({"X-RateLimit-Limit": "1", "Retry-After": "2"}) == {
        "x-ratelimit-limit": "1",
        "retry-after": "2",
    }


# ---------------------------------------------------------------------------
# RateLimitPolicy
# ---------------------------------------------------------------------------


class TestPolicy:
    def test_defaults(self):
        policy = RateLimitPolicy()
        assert policy.auto_retry is False
        assert policy.max_retries == 3
        assert policy.fail_fast is True
        assert policy.warning_threshold == 0.8
        assert policy.default_retry_after == 60.0

    @pytest.mark.parametrize("threshold", [-0.1, 1.01])
    def test_threshold_out_of_range(self, threshold):
        with pytest.raises(ValueError, match="warning_threshold"):
            RateLimitPolicy(warning_threshold=threshold)

    @pytest.mark.parametrize("threshold", [0.0, 1.0])
    def test_threshold_bounds_accepted(self, threshold):
        assert RateLimitPolicy(warning_threshold=threshold).warning_threshold == threshold

    def test_negative_max_retries(self):
        with pytest.raises(ValueError, match="max_retries"):
            RateLimitPolicy(max_retries=-1)

    def test_non_positive_default_retry_after(self):
        with pytest.raises(ValueError, match="default_retry_after"):
            RateLimitPolicy(default_retry_after=0)

    def test_from_settings(self):
        s = Settings(
            rate_limit_auto_retry=True,
            rate_limit_max_retries=5,
            rate_limit_fail_fast=False,
            rate_limit_warning_threshold=0.5,
            rate_limit_default_retry_after=15.0,
        )
        policy = RateLimitPolicy.from_settings(s)
        assert policy == RateLimitPolicy(
            auto_retry=True,
            max_retries=5,
            fail_fast=False,
            warning_threshold=0.5,
            default_retry_after=15.0,
        )


# ---------------------------------------------------------------------------
# parse_retry_after
# ---------------------------------------------------------------------------


class TestParseRetryAfter:
    def test_integer_seconds(self):
        assert parse_retry_after("120") == 120.0

    def test_whitespace_stripped(self):
        assert parse_retry_after(" 7 ") == 7.0

    def test_decimal_seconds(self):
        assert parse_retry_after("1.5") == 1.5

    @pytest.mark.parametrize("value", [None, "", "soon", "-3", "nan", "inf"])
    def test_unusable_values(self, value):
        assert parse_retry_after(value) is None

    def test_http_date(self):
        when = format_datetime(NOW + timedelta(seconds=45), usegmt=True)
        assert parse_retry_after(when, now=NOW) == pytest.approx(45.0)

    def test_http_date_in_past_clamped(self):
        when = format_datetime(NOW - timedelta(seconds=45), usegmt=True)
        assert parse_retry_after(when, now=NOW) == 0.0
