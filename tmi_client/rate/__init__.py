"""Outbound rate limiting: token buckets, limiter and intake queue."""

from .bucket import TokenBucket  # noqa: F401
from .categories import PrivilegeTier, RateLimitCategory  # noqa: F401
from .intake import IntakeQueue, PendingSend  # noqa: F401
from .limiter import RateLimiter  # noqa: F401
from .limits import BucketSpec, RateLimiterConfig, TierLimits  # noqa: F401

__all__ = [
    "TokenBucket",
    "PrivilegeTier",
    "RateLimitCategory",
    "IntakeQueue",
    "PendingSend",
    "RateLimiter",
    "BucketSpec",
    "RateLimiterConfig",
    "TierLimits",
]
