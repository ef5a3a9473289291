"""Token bucket arithmetic."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TokenBucket:
    """Continuous token bucket.

    ``tokens`` always stays within ``[0, capacity]``. Callers pass the current
    monotonic time so the bucket itself never reads a clock.
    """

    capacity: int
    refill_rate: float  # tokens per second
    tokens: float
    last_refill: float

    @classmethod
    def full(cls, capacity: int, refill_rate: float, now: float) -> TokenBucket:
        return cls(
            capacity=capacity,
            refill_rate=refill_rate,
            tokens=float(capacity),
            last_refill=now,
        )

    def refill(self, now: float) -> None:
        elapsed = now - self.last_refill
        if elapsed > 0:
            self.tokens = min(float(self.capacity), self.tokens + elapsed * self.refill_rate)
            self.last_refill = now

    def try_take(self, now: float) -> bool:
        self.refill(now)
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False

    def time_until_token(self) -> float:
        """Seconds until one whole token is available (after a refill)."""
        if self.tokens >= 1:
            return 0.0
        return (1 - self.tokens) / self.refill_rate
