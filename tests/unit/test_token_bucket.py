from __future__ import annotations

import random

import pytest

from tmi_client.rate.bucket import TokenBucket


def test_full_bucket_allows_burst_up_to_capacity():
    bucket = TokenBucket.full(capacity=3, refill_rate=1.0, now=0.0)
    assert [bucket.try_take(0.0) for _ in range(4)] == [True, True, True, False]


def test_refill_is_proportional_to_elapsed_time():
    bucket = TokenBucket.full(capacity=2, refill_rate=4.0, now=0.0)
    bucket.try_take(0.0)
    bucket.try_take(0.0)
    bucket.refill(0.125)
    assert bucket.tokens == pytest.approx(0.5)
    assert bucket.time_until_token() == pytest.approx(0.125)


def test_refill_never_exceeds_capacity():
    bucket = TokenBucket.full(capacity=5, refill_rate=100.0, now=0.0)
    bucket.try_take(0.0)
    bucket.refill(60.0)
    assert bucket.tokens == 5


def test_clock_going_backwards_is_ignored():
    bucket = TokenBucket.full(capacity=1, refill_rate=1.0, now=10.0)
    bucket.try_take(10.0)
    bucket.refill(5.0)
    assert bucket.tokens == 0
    assert bucket.last_refill == 10.0


def test_tokens_stay_within_bounds_under_random_use():
    rng = random.Random(1234)
    bucket = TokenBucket.full(capacity=4, refill_rate=2.5, now=0.0)
    now = 0.0
    for _ in range(2000):
        now += rng.random() * 0.3
        if rng.random() < 0.7:
            bucket.try_take(now)
        else:
            bucket.refill(now)
        assert 0 <= bucket.tokens <= bucket.capacity


def test_time_until_token_is_zero_when_available():
    bucket = TokenBucket.full(capacity=1, refill_rate=1.0, now=0.0)
    assert bucket.time_until_token() == 0.0
