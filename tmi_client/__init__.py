"""Asynchronous Twitch chat (TMI) client."""

from .channels import ChatSender, ErrorReceiver, EventReceiver  # noqa: F401
from .client import ChatClient, connect  # noqa: F401
from .config import Capability, ClientConfig  # noqa: F401
from .connection import Connection, ConnectionState  # noqa: F401
from .errors import (  # noqa: F401
    ClientClosedError,
    EncodeError,
    EncodeErrorKind,
    HandshakeTimeoutError,
    ParseError,
    ParseErrorKind,
    ProtocolError,
    RateLimited,
    RateLimitReason,
    TMIError,
    TransportError,
)
from .irc import commands, events  # noqa: F401
from .irc.commands import (  # noqa: F401
    ChatCommand,
    JoinChannel,
    PartChannel,
    RawCommand,
    SendMessage,
    SendWhisper,
)
from .irc.events import ChannelMessage, Event, Unrecognized, UserState, Whisper  # noqa: F401
from .rate import BucketSpec, PrivilegeTier, RateLimitCategory, RateLimiterConfig  # noqa: F401

__all__ = [
    "connect",
    "ChatClient",
    "ChatSender",
    "EventReceiver",
    "ErrorReceiver",
    "ClientConfig",
    "Capability",
    "Connection",
    "ConnectionState",
    "BucketSpec",
    "RateLimiterConfig",
    "PrivilegeTier",
    "RateLimitCategory",
    "TMIError",
    "ParseError",
    "ParseErrorKind",
    "EncodeError",
    "EncodeErrorKind",
    "RateLimited",
    "RateLimitReason",
    "ProtocolError",
    "HandshakeTimeoutError",
    "TransportError",
    "ClientClosedError",
    "commands",
    "events",
    "JoinChannel",
    "PartChannel",
    "RawCommand",
    "ChatCommand",
    "SendMessage",
    "SendWhisper",
    "Event",
    "ChannelMessage",
    "Whisper",
    "UserState",
    "Unrecognized",
]
