"""Token bucket rate limiter keyed by command category and privilege tier."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from ..errors import ClientClosedError, RateLimited, RateLimitReason
from ..logs.logger import logger
from .bucket import TokenBucket
from .categories import PrivilegeTier, RateLimitCategory
from .limits import RateLimiterConfig


def channel_key(channel: str) -> str:
    return f"#{channel.lstrip('#').lower()}"


class RateLimiter:
    """Grants send permission under Twitch's chat limits.

    One bucket exists per (category, tier). The tier for a channel is our own
    privilege there as last reported by the server; channels never reported
    count as ``UNPRIVILEGED``. When a bucket is empty the caller sleeps
    outside the lock for the computed refill time and then retries, so a
    privilege change during the wait takes effect on the next attempt.
    """

    def __init__(
        self,
        config: RateLimiterConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or RateLimiterConfig()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._buckets: dict[tuple[RateLimitCategory, PrivilegeTier], TokenBucket] = {}
        self._tiers: dict[str, PrivilegeTier] = {}
        self._slow_mode: dict[str, float] = {}
        self._last_message_at: dict[str, float] = {}
        self._closed = asyncio.Event()
        self._waiters = 0

    # --------------------------- Introspection --------------------------- #
    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def snapshot(self) -> dict[str, object]:
        """Return a serializable snapshot of limiter state for debugging."""
        now = self._clock()
        buckets: dict[str, object] = {}
        for (category, tier), bucket in self._buckets.items():
            bucket.refill(now)
            buckets[f"{category.name}:{tier.name}"] = {
                "capacity": bucket.capacity,
                "refill_rate": bucket.refill_rate,
                "tokens": round(bucket.tokens, 3),
            }
        return {
            "closed": self.closed,
            "waiters": self._waiters,
            "tiers": {ch: tier.name for ch, tier in self._tiers.items()},
            "slow_mode": dict(self._slow_mode),
            "buckets": buckets,
        }

    def tier_for(self, channel: str | None) -> PrivilegeTier:
        if channel is None:
            return PrivilegeTier.UNPRIVILEGED
        return self._tiers.get(channel_key(channel), PrivilegeTier.UNPRIVILEGED)

    # ----------------------------- Updates ------------------------------- #
    def update_privilege(self, channel: str, tier: PrivilegeTier) -> None:
        key = channel_key(channel)
        if self._tiers.get(key) is tier:
            return
        self._tiers[key] = tier
        logger.log_event(
            "rate", "privilege_update", level=logging.DEBUG, channel=key, tier=tier.name
        )

    def set_slow_mode(self, channel: str, seconds: float) -> None:
        key = channel_key(channel)
        if seconds > 0:
            self._slow_mode[key] = float(seconds)
        else:
            self._slow_mode.pop(key, None)
        logger.log_event(
            "rate", "slow_mode_update", level=logging.DEBUG, channel=key, seconds=seconds
        )

    def forget_channel(self, channel: str) -> None:
        key = channel_key(channel)
        self._tiers.pop(key, None)
        self._slow_mode.pop(key, None)
        self._last_message_at.pop(key, None)
        logger.log_event("rate", "channel_forgotten", level=logging.DEBUG, channel=key)

    def close(self) -> None:
        """Fail every current and future wait with ``ClientClosedError``."""
        if self.closed:
            return
        self._closed.set()
        logger.log_event("rate", "closed", level=logging.DEBUG, waiters=self._waiters)

    # ----------------------------- Acquire ------------------------------- #
    def _bucket(self, category: RateLimitCategory, tier: PrivilegeTier, now: float) -> TokenBucket:
        bucket = self._buckets.get((category, tier))
        if bucket is None:
            spec = self.config.spec_for(category, tier)
            bucket = TokenBucket.full(spec.capacity, spec.refill_rate, now)
            self._buckets[(category, tier)] = bucket
        return bucket

    def _slow_mode_wait(self, key: str | None, now: float) -> float:
        if key is None or key not in self._slow_mode:
            return 0.0
        last = self._last_message_at.get(key)
        if last is None:
            return 0.0
        return max(0.0, last + self._slow_mode[key] - now)

    async def acquire(
        self,
        category: RateLimitCategory,
        channel: str | None = None,
        *,
        timeout: float | None = None,
    ) -> PrivilegeTier:
        """Take one token for ``category`` in ``channel``'s current tier.

        Returns the tier whose bucket was charged.

        Raises:
            RateLimited: The next token cannot arrive before ``timeout``.
            ClientClosedError: The limiter was closed before or during the wait.
        """
        if self.closed:
            raise ClientClosedError("Rate limiter is closed")
        key = channel_key(channel) if channel is not None else None
        if category is RateLimitCategory.UNLIMITED:
            return self.tier_for(key)
        deadline = None if timeout is None else self._clock() + timeout

        while True:
            async with self._lock:
                if self.closed:
                    raise ClientClosedError("Rate limiter is closed")
                now = self._clock()
                tier = self.tier_for(key)
                bucket = self._bucket(category, tier, now)
                bucket.refill(now)
                spacing = 0.0
                if category is RateLimitCategory.MESSAGE and tier is PrivilegeTier.UNPRIVILEGED:
                    spacing = self._slow_mode_wait(key, now)
                if spacing <= 0 and bucket.try_take(now):
                    if category is RateLimitCategory.MESSAGE and key is not None:
                        self._last_message_at[key] = now
                    return tier
                wait = max(spacing, bucket.time_until_token())
                if deadline is not None and wait > deadline - now:
                    logger.log_event(
                        "rate",
                        "timeout",
                        level=logging.DEBUG,
                        channel=key,
                        wait=wait,
                        remaining=max(0.0, deadline - now),
                    )
                    raise RateLimited(
                        RateLimitReason.TIMEOUT,
                        f"{category.name} token not available within {timeout}s",
                        data={"wait": wait, "category": category.name, "tier": tier.name},
                    )
            logger.log_event(
                "rate",
                "wait",
                level=logging.DEBUG,
                channel=key,
                wait=wait,
                category=category.name,
                tier=tier.name,
            )
            await self._sleep(wait)

    async def _sleep(self, delay: float) -> None:
        self._waiters += 1
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=delay)
        except TimeoutError:
            return
        finally:
            self._waiters -= 1
        raise ClientClosedError("Rate limiter closed while waiting")


__all__ = ["RateLimiter", "channel_key"]
