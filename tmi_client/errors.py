"""Error hierarchy for the TMI client.

Every error raised or reported by the client derives from ``TMIError`` so
callers can catch the whole family with one clause. Errors carry an optional
structured ``data`` mapping with context for logging.

Classes:
  TMIError              - Base for all client errors.
  ParseError            - An inbound line could not be parsed (non-fatal).
  EncodeError           - An outbound command could not be encoded.
  RateLimited           - A send was refused by the intake queue or limiter.
  ProtocolError         - The server violated the expected conversation (fatal).
  HandshakeTimeoutError - Login or capability negotiation took too long.
  TransportError        - The underlying connection failed or closed (fatal).
  ClientClosedError     - The client was closed by the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class TMIError(Exception):
    """Base class for all client errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class ParseErrorKind(StrEnum):
    MALFORMED = "malformed"
    MISSING_PARAMETERS = "missing_parameters"


class ParseError(TMIError):
    """Raised when an inbound line does not follow the IRC grammar.

    Parse errors never end the session: the offending line is reported on
    the error channel and the stream continues with the next line.

    Args:
        kind: What was wrong with the line.
        line: The offending raw line.
        message: Optional human readable detail.
    """

    def __init__(
        self, kind: ParseErrorKind, line: str, message: str | None = None
    ) -> None:
        super().__init__(
            message or f"Could not parse line ({kind}): {line!r}",
            data={"kind": kind, "line": line},
        )
        self.kind = kind
        self.line = line


class EncodeErrorKind(StrEnum):
    INVALID_CHANNEL = "invalid_channel"
    EMPTY_BODY = "empty_body"
    TOO_LONG = "too_long"
    INVALID_CHARACTERS = "invalid_characters"


class EncodeError(TMIError):
    """Raised when a command cannot be turned into a valid wire line."""

    def __init__(self, kind: EncodeErrorKind, message: str | None = None) -> None:
        super().__init__(message or f"Cannot encode command: {kind}", data={"kind": kind})
        self.kind = kind


class RateLimitReason(StrEnum):
    QUEUE_FULL = "queue_full"
    TIMEOUT = "timeout"


class RateLimited(TMIError):
    """Raised when a send was refused before reaching the wire.

    ``QUEUE_FULL`` means the intake queue was at capacity when the command
    was submitted. ``TIMEOUT`` means the rate limiter could not grant a token
    before the send deadline.

    Args:
        reason: Why the send was refused.
        message: Optional human readable detail.
        data: Optional extra context merged into ``data``.
    """

    def __init__(
        self,
        reason: RateLimitReason,
        message: str | None = None,
        *,
        data: Mapping[str, object] | None = None,
    ) -> None:
        merged: dict[str, object] = {"reason": reason}
        if data:
            merged.update(data)
        super().__init__(message or f"Rate limited ({reason})", data=merged)
        self.reason = reason


class ProtocolError(TMIError):
    """Raised when the server response breaks the expected conversation."""


class HandshakeTimeoutError(ProtocolError):
    """Raised when login and capability negotiation exceed the deadline."""


class TransportError(TMIError):
    """Raised when the underlying connection fails or is closed remotely."""


class ClientClosedError(TMIError):
    """Raised for operations on, or waits interrupted by, a closed client."""

    def __init__(self, message: str = "Client is closed", **kwargs: object) -> None:
        super().__init__(message, data=kwargs or None)


__all__ = [
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
]
