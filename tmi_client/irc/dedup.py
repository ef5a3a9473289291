"""Bypass for Twitch's 30 second duplicate message detection."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

from ..constants import DEDUP_SUFFIX, DEDUP_WINDOW_SECONDS, MAX_MESSAGE_LENGTH
from ..logs.logger import logger
from .commands import ClientMessage, SendMessage
from .encoder import normalize_channel


@dataclass(slots=True)
class _SentRecord:
    sent_at: float
    body: str


class MessageDeduplicator:
    """Appends an invisible suffix to a repeat of the last message in a channel.

    Only the most recent body per channel is remembered. The stored body is
    the one actually sent, so a third identical message goes out unmodified
    again.
    """

    def __init__(
        self,
        window: float = DEDUP_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window = window
        self._clock = clock
        self._last: dict[str, _SentRecord] = {}

    def apply(self, message: ClientMessage) -> ClientMessage:
        if not isinstance(message, SendMessage):
            return message
        channel = normalize_channel(message.channel)
        now = self._clock()
        previous = self._last.get(channel)
        if (
            previous is not None
            and now - previous.sent_at < self.window
            and previous.body == message.body
            and len(message.body) + len(DEDUP_SUFFIX) <= MAX_MESSAGE_LENGTH
        ):
            message = replace(message, body=message.body + DEDUP_SUFFIX)
            logger.log_event("sender", "dedup_applied", level=logging.DEBUG, channel=channel)
        self._last[channel] = _SentRecord(sent_at=now, body=message.body)
        return message

    def forget(self, channel: str) -> None:
        self._last.pop(normalize_channel(channel), None)


__all__ = ["MessageDeduplicator"]
