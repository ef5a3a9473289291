"""Bucket sizing for each rate limit category and privilege tier."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..constants import (
    JOIN_LIMIT,
    JOIN_LIMIT_WINDOW_SECONDS,
    MESSAGE_LIMIT_PRIVILEGED,
    MESSAGE_LIMIT_UNPRIVILEGED,
    MESSAGE_LIMIT_WINDOW_SECONDS,
    WHISPER_LIMIT,
    WHISPER_LIMIT_WINDOW_SECONDS,
)
from .categories import PrivilegeTier, RateLimitCategory


class BucketSpec(BaseModel):
    """Token bucket size and refill speed.

    Attributes:
        capacity: Maximum tokens held, i.e. the burst size.
        refill_rate: Tokens added per second.
    """

    model_config = ConfigDict(frozen=True)

    capacity: int = Field(gt=0)
    refill_rate: float = Field(gt=0)

    @classmethod
    def per_window(cls, count: int, window_seconds: float) -> BucketSpec:
        return cls(capacity=count, refill_rate=count / window_seconds)


class TierLimits(BaseModel):
    unprivileged: BucketSpec
    moderator: BucketSpec
    broadcaster: BucketSpec

    def for_tier(self, tier: PrivilegeTier) -> BucketSpec:
        return getattr(self, tier.name.lower())

    @classmethod
    def uniform(cls, spec: BucketSpec) -> TierLimits:
        return cls(unprivileged=spec, moderator=spec, broadcaster=spec)


def _default_message_limits() -> TierLimits:
    privileged = BucketSpec.per_window(
        MESSAGE_LIMIT_PRIVILEGED, MESSAGE_LIMIT_WINDOW_SECONDS
    )
    return TierLimits(
        unprivileged=BucketSpec.per_window(
            MESSAGE_LIMIT_UNPRIVILEGED, MESSAGE_LIMIT_WINDOW_SECONDS
        ),
        moderator=privileged,
        broadcaster=privileged,
    )


def _default_join_limits() -> TierLimits:
    return TierLimits.uniform(
        BucketSpec.per_window(JOIN_LIMIT, JOIN_LIMIT_WINDOW_SECONDS)
    )


def _default_whisper_limits() -> TierLimits:
    return TierLimits.uniform(
        BucketSpec.per_window(WHISPER_LIMIT, WHISPER_LIMIT_WINDOW_SECONDS)
    )


class RateLimiterConfig(BaseModel):
    """Per category bucket sizes; defaults follow Twitch's documented limits."""

    message: TierLimits = Field(default_factory=_default_message_limits)
    join: TierLimits = Field(default_factory=_default_join_limits)
    whisper: TierLimits = Field(default_factory=_default_whisper_limits)

    def spec_for(self, category: RateLimitCategory, tier: PrivilegeTier) -> BucketSpec:
        if category is RateLimitCategory.UNLIMITED:
            raise ValueError("UNLIMITED commands have no bucket")
        limits: TierLimits = getattr(self, category.name.lower())
        return limits.for_tier(tier)


__all__ = ["BucketSpec", "TierLimits", "RateLimiterConfig"]
