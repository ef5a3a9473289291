"""Outbound commands understood by the encoder.

Each command exposes the rate limit ``category`` it is charged against and
the ``rate_limit_channel`` whose privilege tier selects the bucket.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from ..rate.categories import RateLimitCategory


@dataclass(frozen=True, slots=True)
class ClientMessage:
    category: ClassVar[RateLimitCategory] = RateLimitCategory.UNLIMITED

    @property
    def rate_limit_channel(self) -> str | None:
        return None


@dataclass(frozen=True, slots=True)
class JoinChannel(ClientMessage):
    category: ClassVar[RateLimitCategory] = RateLimitCategory.JOIN
    channel: str

    @property
    def rate_limit_channel(self) -> str | None:
        return self.channel


@dataclass(frozen=True, slots=True)
class PartChannel(ClientMessage):
    category: ClassVar[RateLimitCategory] = RateLimitCategory.JOIN
    channel: str

    @property
    def rate_limit_channel(self) -> str | None:
        return self.channel


@dataclass(frozen=True, slots=True)
class SendMessage(ClientMessage):
    """Chat message; ``reply_to`` threads it under a message id."""

    category: ClassVar[RateLimitCategory] = RateLimitCategory.MESSAGE
    channel: str
    body: str
    reply_to: str | None = None
    action: bool = False

    @property
    def rate_limit_channel(self) -> str | None:
        return self.channel


@dataclass(frozen=True, slots=True)
class SendWhisper(ClientMessage):
    category: ClassVar[RateLimitCategory] = RateLimitCategory.WHISPER
    recipient: str
    body: str


@dataclass(frozen=True, slots=True)
class RawCommand(ClientMessage):
    """Verbatim line, charged as a chat message against ``channel`` if given."""

    category: ClassVar[RateLimitCategory] = RateLimitCategory.MESSAGE
    line: str
    channel: str | None = None

    @property
    def rate_limit_channel(self) -> str | None:
        return self.channel


@dataclass(frozen=True, slots=True)
class ChatCommand(ClientMessage):
    """Slash command such as ``/ban user`` sent as a chat message to ``channel``."""

    category: ClassVar[RateLimitCategory] = RateLimitCategory.MESSAGE
    channel: str
    name: str
    args: tuple[str, ...] = ()

    @property
    def rate_limit_channel(self) -> str | None:
        return self.channel


@dataclass(frozen=True, slots=True)
class Pong(ClientMessage):
    argument: str = "tmi.twitch.tv"


@dataclass(frozen=True, slots=True)
class Ping(ClientMessage):
    argument: str = "tmi.twitch.tv"


@dataclass(frozen=True, slots=True)
class Pass(ClientMessage):
    token: str

    def __repr__(self) -> str:
        return "Pass(token='***')"


@dataclass(frozen=True, slots=True)
class Nick(ClientMessage):
    nickname: str


@dataclass(frozen=True, slots=True)
class CapRequest(ClientMessage):
    capabilities: tuple[str, ...]


__all__ = [
    "ClientMessage",
    "JoinChannel",
    "PartChannel",
    "SendMessage",
    "SendWhisper",
    "RawCommand",
    "ChatCommand",
    "Pong",
    "Ping",
    "Pass",
    "Nick",
    "CapRequest",
]
