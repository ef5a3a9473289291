"""Rate limit categories and privilege tiers."""

from __future__ import annotations

from enum import Enum, auto


class RateLimitCategory(Enum):
    MESSAGE = auto()
    JOIN = auto()
    WHISPER = auto()
    UNLIMITED = auto()


class PrivilegeTier(Enum):
    """Our own standing in a channel, ordered from least to most privileged."""

    UNPRIVILEGED = auto()
    MODERATOR = auto()  # moderators and VIPs share the elevated limits
    BROADCASTER = auto()


__all__ = ["RateLimitCategory", "PrivilegeTier"]
