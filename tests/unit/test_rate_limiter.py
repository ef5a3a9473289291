from __future__ import annotations

import asyncio
import time

import pytest

from tmi_client.errors import ClientClosedError, RateLimited, RateLimitReason
from tmi_client.rate.categories import PrivilegeTier, RateLimitCategory
from tmi_client.rate.limiter import RateLimiter
from tmi_client.rate.limits import BucketSpec, RateLimiterConfig, TierLimits

MESSAGE = RateLimitCategory.MESSAGE


def _limiter(unprivileged: BucketSpec, privileged: BucketSpec | None = None, **kwargs) -> RateLimiter:
    privileged = privileged or unprivileged
    tiers = TierLimits(unprivileged=unprivileged, moderator=privileged, broadcaster=privileged)
    return RateLimiter(RateLimiterConfig(message=tiers, join=tiers, whisper=tiers), **kwargs)


class FrozenClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_second_acquire_waits_for_refill():
    limiter = _limiter(BucketSpec(capacity=1, refill_rate=20))
    await limiter.acquire(MESSAGE, "#chan")
    start = time.monotonic()
    await limiter.acquire(MESSAGE, "#chan")
    elapsed = time.monotonic() - start
    assert 0.04 <= elapsed < 0.5


@pytest.mark.asyncio
async def test_timeout_fails_immediately_when_wait_is_too_long():
    clock = FrozenClock()
    limiter = _limiter(BucketSpec(capacity=1, refill_rate=1), clock=clock)
    await limiter.acquire(MESSAGE, "#chan")
    with pytest.raises(RateLimited) as exc_info:
        await limiter.acquire(MESSAGE, "#chan", timeout=0.5)
    assert exc_info.value.reason is RateLimitReason.TIMEOUT
    assert exc_info.value.data["wait"] == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_zero_timeout_succeeds_while_tokens_remain():
    limiter = _limiter(BucketSpec(capacity=2, refill_rate=1), clock=FrozenClock())
    await limiter.acquire(MESSAGE, "#chan", timeout=0)
    await limiter.acquire(MESSAGE, "#chan", timeout=0)
    with pytest.raises(RateLimited):
        await limiter.acquire(MESSAGE, "#chan", timeout=0)


@pytest.mark.asyncio
async def test_unlimited_never_waits():
    limiter = _limiter(BucketSpec(capacity=1, refill_rate=0.001), clock=FrozenClock())
    for _ in range(50):
        await limiter.acquire(RateLimitCategory.UNLIMITED, timeout=0)


@pytest.mark.asyncio
async def test_privilege_selects_bucket():
    clock = FrozenClock()
    limiter = _limiter(
        BucketSpec(capacity=1, refill_rate=0.01),
        BucketSpec(capacity=5, refill_rate=0.01),
        clock=clock,
    )
    assert await limiter.acquire(MESSAGE, "#chan", timeout=0) is PrivilegeTier.UNPRIVILEGED
    limiter.update_privilege("#Chan", PrivilegeTier.MODERATOR)
    assert limiter.tier_for("chan") is PrivilegeTier.MODERATOR
    for _ in range(5):
        assert await limiter.acquire(MESSAGE, "#chan", timeout=0) is PrivilegeTier.MODERATOR
    # Other channels keep the unprivileged bucket, which is already empty
    with pytest.raises(RateLimited):
        await limiter.acquire(MESSAGE, "#other", timeout=0)


@pytest.mark.asyncio
async def test_privilege_change_applies_to_waiting_acquire():
    limiter = _limiter(BucketSpec(capacity=1, refill_rate=4), BucketSpec(capacity=10, refill_rate=4))
    await limiter.acquire(MESSAGE, "#chan")
    waiter = asyncio.create_task(limiter.acquire(MESSAGE, "#chan"))
    await asyncio.sleep(0)
    limiter.update_privilege("#chan", PrivilegeTier.BROADCASTER)
    assert await asyncio.wait_for(waiter, timeout=1) is PrivilegeTier.BROADCASTER


@pytest.mark.asyncio
async def test_forget_channel_resets_tier():
    limiter = _limiter(BucketSpec(capacity=1, refill_rate=1), clock=FrozenClock())
    limiter.update_privilege("#chan", PrivilegeTier.BROADCASTER)
    limiter.forget_channel("chan")
    assert limiter.tier_for("#chan") is PrivilegeTier.UNPRIVILEGED
    assert limiter.tier_for(None) is PrivilegeTier.UNPRIVILEGED


@pytest.mark.asyncio
async def test_slow_mode_spaces_unprivileged_messages():
    limiter = _limiter(BucketSpec(capacity=10, refill_rate=10))
    limiter.set_slow_mode("#chan", 0.1)
    await limiter.acquire(MESSAGE, "#chan")
    start = time.monotonic()
    await limiter.acquire(MESSAGE, "#chan")
    assert time.monotonic() - start >= 0.08


@pytest.mark.asyncio
async def test_slow_mode_does_not_apply_to_moderators_or_other_channels():
    clock = FrozenClock()
    limiter = _limiter(BucketSpec(capacity=10, refill_rate=1), clock=clock)
    limiter.set_slow_mode("#chan", 30)
    await limiter.acquire(MESSAGE, "#chan", timeout=0)
    await limiter.acquire(MESSAGE, "#other", timeout=0)
    with pytest.raises(RateLimited):
        await limiter.acquire(MESSAGE, "#chan", timeout=0)
    limiter.update_privilege("#chan", PrivilegeTier.MODERATOR)
    await limiter.acquire(MESSAGE, "#chan", timeout=0)
    limiter.set_slow_mode("#chan", 0)
    limiter.update_privilege("#chan", PrivilegeTier.UNPRIVILEGED)
    await limiter.acquire(MESSAGE, "#chan", timeout=0)


@pytest.mark.asyncio
async def test_close_cancels_waiters():
    limiter = _limiter(BucketSpec(capacity=1, refill_rate=0.01))
    await limiter.acquire(MESSAGE, "#chan")
    waiter = asyncio.create_task(limiter.acquire(MESSAGE, "#chan"))
    await asyncio.sleep(0.01)
    assert limiter.snapshot()["waiters"] == 1
    limiter.close()
    with pytest.raises(ClientClosedError):
        await asyncio.wait_for(waiter, timeout=1)
    with pytest.raises(ClientClosedError):
        await limiter.acquire(MESSAGE, "#chan")


@pytest.mark.asyncio
async def test_snapshot_reports_buckets_and_tiers():
    limiter = _limiter(BucketSpec(capacity=3, refill_rate=1), clock=FrozenClock())
    limiter.update_privilege("#chan", PrivilegeTier.MODERATOR)
    await limiter.acquire(MESSAGE, "#chan")
    snap = limiter.snapshot()
    assert snap["tiers"] == {"#chan": "MODERATOR"}
    assert snap["buckets"]["MESSAGE:MODERATOR"]["tokens"] == 2
    assert snap["closed"] is False
