from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    ERROR_BUFFER_SIZE,
    EVENT_BUFFER_SIZE,
    HANDSHAKE_TIMEOUT_SECONDS,
    HEARTBEAT_INTERVAL_SECONDS,
    HEARTBEAT_TIMEOUT_SECONDS,
    INTAKE_QUEUE_DEPTH,
    TMI_WEBSOCKET_URL,
)
from .rate.limits import RateLimiterConfig


class Capability(StrEnum):
    TAGS = "twitch.tv/tags"
    COMMANDS = "twitch.tv/commands"
    MEMBERSHIP = "twitch.tv/membership"


_KNOWN_CAPABILITIES = frozenset(cap.value for cap in Capability)


def _default_capabilities() -> list[Capability | str]:
    return [Capability.TAGS, Capability.COMMANDS, Capability.MEMBERSHIP]


class ClientConfig(BaseModel):
    """Settings for one chat connection.

    Attributes:
        username: Login name of the account, lower-cased.
        token: OAuth chat token; an ``oauth:`` prefix is added when missing.
        url: Websocket endpoint.
        capabilities: Capabilities requested during the handshake.
        required_capabilities: Capabilities whose refusal fails the handshake.
        rate_limits: Bucket sizes per category and privilege tier.
        intake_queue_depth: Outbound commands accepted but not yet written.
        send_timeout: Longest rate limit wait per command; None waits forever.
        handshake_timeout: Deadline for login and capability negotiation.
        event_buffer: Events buffered before reading pauses.
        error_buffer: Errors kept before the oldest is dropped.
        heartbeat_interval: Seconds between client PINGs; None disables them.
        heartbeat_timeout: Seconds to wait for the matching PONG.
        dedup_messages: Make repeated identical messages pass Twitch's filter.
    """

    username: str = Field(min_length=1, max_length=25)
    token: str = Field(min_length=1, repr=False)
    url: str = TMI_WEBSOCKET_URL
    capabilities: list[Capability | str] = Field(default_factory=_default_capabilities)
    required_capabilities: list[Capability | str] = Field(default_factory=list)
    rate_limits: RateLimiterConfig = Field(default_factory=RateLimiterConfig)
    intake_queue_depth: int = Field(default=INTAKE_QUEUE_DEPTH, ge=1)
    send_timeout: float | None = Field(default=None, ge=0)
    handshake_timeout: float = Field(default=HANDSHAKE_TIMEOUT_SECONDS, gt=0)
    event_buffer: int = Field(default=EVENT_BUFFER_SIZE, ge=1)
    error_buffer: int = Field(default=ERROR_BUFFER_SIZE, ge=1)
    heartbeat_interval: float | None = Field(default=HEARTBEAT_INTERVAL_SECONDS, gt=0)
    heartbeat_timeout: float = Field(default=HEARTBEAT_TIMEOUT_SECONDS, gt=0)
    dedup_messages: bool = False

    @field_validator("username", mode="before")
    @classmethod
    def validate_username(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise ValueError("username must be a string")
        name = v.strip().lower()
        if not name or any(ch.isspace() for ch in name):
            raise ValueError("username must be a single non-empty word")
        return name

    @field_validator("token", mode="before")
    @classmethod
    def validate_token(cls, v: Any) -> str:
        """Strip whitespace and normalize to the ``oauth:<token>`` form."""
        if not isinstance(v, str):
            raise ValueError("token must be a string")
        token = v.strip()
        if token.lower().startswith("oauth:"):
            token = token[len("oauth:") :]
        if not token or any(ch.isspace() for ch in token):
            raise ValueError("token must not be empty or contain whitespace")
        return f"oauth:{token}"

    @field_validator("capabilities", "required_capabilities")
    @classmethod
    def normalize_capabilities(cls, v: list[Capability | str]) -> list[Capability | str]:
        """Map known names onto ``Capability`` and drop duplicates."""
        names: list[Capability | str] = []
        for cap in v:
            name = str(cap).strip()
            if not name or any(ch.isspace() for ch in name):
                raise ValueError(f"invalid capability name: {cap!r}")
            names.append(Capability(name) if name in _KNOWN_CAPABILITIES else name)
        return list(dict.fromkeys(names))

    @model_validator(mode="after")
    def validate_required_subset(self) -> ClientConfig:
        missing = set(self.required_capabilities) - set(self.capabilities)
        if missing:
            names = ", ".join(sorted(missing))
            raise ValueError(f"required capabilities not requested: {names}")
        return self


__all__ = ["Capability", "ClientConfig"]
