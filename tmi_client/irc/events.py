"""Typed events produced from inbound IRC messages.

Every event carries the decoded ``tags`` and the ``sender`` login (when the
prefix names one). Channel names are kept as received, including the ``#``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from ..rate.categories import PrivilegeTier
from .parser import RawMessage
from .tags import MessageTags


@dataclass(slots=True, kw_only=True)
class Event:
    tags: MessageTags = field(default_factory=MessageTags)
    sender: str | None = None


@dataclass(slots=True, kw_only=True)
class ChannelMessage(Event):
    channel: str
    message: str
    is_action: bool = False

    @property
    def display_name(self) -> str | None:
        return self.tags.display_name

    @property
    def bits(self) -> int | None:
        return self.tags.bits


@dataclass(slots=True, kw_only=True)
class Whisper(Event):
    recipient: str
    message: str


@dataclass(slots=True, kw_only=True)
class Join(Event):
    channel: str


@dataclass(slots=True, kw_only=True)
class Part(Event):
    channel: str


@dataclass(slots=True, kw_only=True)
class RoomState(Event):
    channel: str


@dataclass(slots=True, kw_only=True)
class UserState(Event):
    """Our own state in a channel, sent after joining and after each message."""

    channel: str


@dataclass(slots=True, kw_only=True)
class GlobalUserState(Event):
    pass


@dataclass(slots=True, kw_only=True)
class UserNotice(Event):
    """Subscriptions, raids and similar announcements; ``message`` is optional."""

    channel: str
    message: str | None = None


@dataclass(slots=True, kw_only=True)
class ClearChat(Event):
    """Chat cleared entirely, or a single user timed out or banned."""

    channel: str
    target_user: str | None = None


@dataclass(slots=True, kw_only=True)
class ClearMessage(Event):
    channel: str
    message: str


@dataclass(slots=True, kw_only=True)
class Notice(Event):
    target: str
    message: str


@dataclass(slots=True, kw_only=True)
class HostTarget(Event):
    """Hosting started (``target`` set) or ended (``target`` None)."""

    channel: str
    target: str | None = None
    viewers: int | None = None


@dataclass(slots=True, kw_only=True)
class Names(Event):
    channel: str
    names: list[str] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class EndOfNames(Event):
    channel: str


@dataclass(slots=True, kw_only=True)
class ConnectMessage(Event):
    """Numeric welcome replies 001-004, 372, 375 and 376."""

    code: str
    target: str
    message: str


@dataclass(slots=True, kw_only=True)
class Ping(Event):
    argument: str | None = None


@dataclass(slots=True, kw_only=True)
class Pong(Event):
    argument: str | None = None


@dataclass(slots=True, kw_only=True)
class Reconnect(Event):
    pass


class CapabilitySubcommand(StrEnum):
    ACK = "ACK"
    NAK = "NAK"
    LS = "LS"


@dataclass(slots=True, kw_only=True)
class Capability(Event):
    subcommand: CapabilitySubcommand
    capabilities: list[str] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class Unrecognized(Event):
    raw: RawMessage


@dataclass(frozen=True, slots=True)
class PrivilegeUpdate:
    channel: str
    tier: PrivilegeTier


@dataclass(frozen=True, slots=True)
class SlowModeUpdate:
    channel: str
    seconds: int


__all__ = [
    "Event",
    "ChannelMessage",
    "Whisper",
    "Join",
    "Part",
    "RoomState",
    "UserState",
    "GlobalUserState",
    "UserNotice",
    "ClearChat",
    "ClearMessage",
    "Notice",
    "HostTarget",
    "Names",
    "EndOfNames",
    "ConnectMessage",
    "Ping",
    "Pong",
    "Reconnect",
    "Capability",
    "CapabilitySubcommand",
    "Unrecognized",
    "PrivilegeUpdate",
    "SlowModeUpdate",
]
