"""Pydantic models for the ``GET /rate_limit`` response."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from ghtoolkit.sdk.models import RateLimitSnapshot


class RateLimitResource(BaseModel):
    """Quota state of a single GitHub rate-limit bucket."""

    limit: int = Field(..., description="Requests allowed per window")
    used: int = Field(..., description="Requests consumed in the current window")
    remaining: int = Field(..., description="Requests left in the current window")
    reset: int = Field(..., description="Window reset time in epoch seconds")

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset, tz=timezone.utc)

    def to_snapshot(self, resource: str) -> RateLimitSnapshot:
        return RateLimitSnapshot(
            limit=self.limit,
            remaining=self.remaining,
            used=self.used,
            reset_at=self.reset_at,
            resource=resource,
        )


class RateLimitResources(BaseModel):
    """Per-bucket quotas.  Buckets GitHub adds later are kept as extras."""

    model_config = ConfigDict(extra="allow")

    core: RateLimitResource
    search: RateLimitResource
    graphql: RateLimitResource
    integration_manifest: RateLimitResource | None = None
    source_import: RateLimitResource | None = None
    code_search: RateLimitResource | None = None
    actions_runner_registration: RateLimitResource | None = None
    scim: RateLimitResource | None = None
    dependency_snapshots: RateLimitResource | None = None
    code_scanning_upload: RateLimitResource | None = None

    def buckets(self) -> dict[str, RateLimitResource]:
        """All populated buckets keyed by resource name."""
        found: dict[str, RateLimitResource] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is not None:
                found[name] = value
        for name, value in (self.model_extra or {}).items():
            if isinstance(value, dict):
                found[name] = RateLimitResource.model_validate(value)
        return found


class RateLimitStatus(BaseModel):
    """Full quota report returned by ``GET /rate_limit``."""

    resources: RateLimitResources
    rate: RateLimitResource = Field(
        ..., description="Deprecated alias of resources.core"
    )

    def snapshots(self) -> dict[str, RateLimitSnapshot]:
        return {
            name: bucket.to_snapshot(name)
            for name, bucket in self.resources.buckets().items()
        }
