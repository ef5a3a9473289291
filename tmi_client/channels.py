"""Caller facing halves of a connection: sender, event and error receivers."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Generic, TypeVar

from .errors import TMIError
from .irc.commands import (
    ChatCommand,
    ClientMessage,
    JoinChannel,
    PartChannel,
    RawCommand,
    SendMessage,
    SendWhisper,
)
from .irc.events import Event

if TYPE_CHECKING:
    from .connection import Connection

T = TypeVar("T")


def _optional(value: str | None) -> tuple[str, ...]:
    return () if value is None else (value,)


async def _wait_for_item(getter: asyncio.Future[T], closed: asyncio.Event) -> T | None:
    closer = asyncio.ensure_future(closed.wait())
    try:
        await asyncio.wait({getter, closer}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        closer.cancel()
        if not getter.done():
            getter.cancel()
    if getter.done() and not getter.cancelled():
        return getter.result()
    return None


class _ClosableReceiver(Generic[T]):
    def __init__(self) -> None:
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _finish(self) -> None:
        self._closed.set()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        while True:
            item = await self.recv()
            if item is None:
                return
            yield item

    async def recv(self) -> T | None:  # pragma: no cover - overridden
        raise NotImplementedError


class EventReceiver(_ClosableReceiver[Event]):
    """Bounded FIFO of inbound events.

    The read task waits when the buffer is full, so a slow consumer slows
    reading instead of losing events. ``recv`` returns None once the
    connection is finished and every buffered event was consumed.
    """

    def __init__(self, connection: Connection, maxsize: int) -> None:
        super().__init__()
        self._connection = connection
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=maxsize)

    def qsize(self) -> int:
        return self._queue.qsize()

    async def _put(self, event: Event) -> None:
        await self._queue.put(event)

    async def recv(self) -> Event | None:
        while True:
            try:
                return self._queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            if self.closed:
                return None
            item = await _wait_for_item(
                asyncio.ensure_future(self._queue.get()), self._closed
            )
            if item is not None:
                return item

    async def close(self) -> None:
        """Stop receiving; this disconnects the whole client."""
        await self._connection.disconnect()


class ErrorReceiver(_ClosableReceiver[TMIError]):
    """Non-blocking error channel keeping the most recent ``maxsize`` errors.

    Pushing never waits; when full the oldest error is discarded and counted
    in ``dropped``.
    """

    def __init__(self, maxsize: int) -> None:
        super().__init__()
        self._items: deque[TMIError] = deque(maxlen=maxsize)
        self._available = asyncio.Event()
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._items)

    def _push(self, error: TMIError) -> None:
        if self.closed:
            return
        if len(self._items) == self._items.maxlen:
            self.dropped += 1
        self._items.append(error)
        self._available.set()

    def get_nowait(self) -> TMIError | None:
        return self._items.popleft() if self._items else None

    async def recv(self) -> TMIError | None:
        while True:
            if self._items:
                return self._items.popleft()
            if self.closed:
                return None
            self._available.clear()
            await _wait_for_item(
                asyncio.ensure_future(self._available.wait()), self._closed
            )


class ChatSender:
    """Submits commands to the connection's intake queue.

    ``submit`` returns a ticket future resolved once the line is written, or
    failed with the reason it never was. The ``async`` helpers await it.
    """

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def submit(self, message: ClientMessage) -> asyncio.Future[None]:
        """Queue ``message`` and return its ticket.

        Raises:
            EncodeError: The command can never be encoded.
            RateLimited: The intake queue is full.
            ClientClosedError: The connection is closed.
        """
        return self._connection.submit(message)

    async def send(self, message: ClientMessage) -> None:
        await self.submit(message)

    async def join(self, channel: str) -> None:
        await self.send(JoinChannel(channel=channel))

    async def part(self, channel: str) -> None:
        await self.send(PartChannel(channel=channel))

    async def message(self, channel: str, body: str) -> None:
        await self.send(SendMessage(channel=channel, body=body))

    async def reply(self, channel: str, message_id: str, body: str) -> None:
        await self.send(SendMessage(channel=channel, body=body, reply_to=message_id))

    async def me(self, channel: str, body: str) -> None:
        await self.send(SendMessage(channel=channel, body=body, action=True))

    async def whisper(self, recipient: str, body: str) -> None:
        await self.send(SendWhisper(recipient=recipient, body=body))

    async def raw(self, line: str, channel: str | None = None) -> None:
        await self.send(RawCommand(line=line, channel=channel))

    # ------------------------- Chat commands ---------------------------- #
    async def command(self, channel: str, name: str, *args: str) -> None:
        """Send ``/name args...`` to ``channel``, charged as a chat message."""
        await self.send(ChatCommand(channel=channel, name=name, args=args))

    async def ban(self, channel: str, user: str, reason: str | None = None) -> None:
        await self.command(channel, "ban", user, *_optional(reason))

    async def unban(self, channel: str, user: str) -> None:
        await self.command(channel, "unban", user)

    async def timeout(
        self, channel: str, user: str, seconds: int = 600, reason: str | None = None
    ) -> None:
        await self.command(channel, "timeout", user, str(seconds), *_optional(reason))

    async def untimeout(self, channel: str, user: str) -> None:
        await self.command(channel, "untimeout", user)

    async def clear(self, channel: str) -> None:
        await self.command(channel, "clear")

    async def delete(self, channel: str, message_id: str) -> None:
        await self.command(channel, "delete", message_id)

    async def slow(self, channel: str, seconds: int) -> None:
        await self.command(channel, "slow", str(seconds))

    async def slow_off(self, channel: str) -> None:
        await self.command(channel, "slowoff")

    async def emote_only(self, channel: str, enabled: bool = True) -> None:
        await self.command(channel, "emoteonly" if enabled else "emoteonlyoff")

    async def followers_only(
        self, channel: str, enabled: bool = True, duration: str | None = None
    ) -> None:
        if not enabled:
            await self.command(channel, "followersoff")
            return
        await self.command(channel, "followers", *_optional(duration))

    async def subscribers_only(self, channel: str, enabled: bool = True) -> None:
        await self.command(channel, "subscribers" if enabled else "subscribersoff")

    async def unique_chat(self, channel: str, enabled: bool = True) -> None:
        await self.command(channel, "uniquechat" if enabled else "uniquechatoff")

    async def mod(self, channel: str, user: str) -> None:
        await self.command(channel, "mod", user)

    async def unmod(self, channel: str, user: str) -> None:
        await self.command(channel, "unmod", user)

    async def vip(self, channel: str, user: str) -> None:
        await self.command(channel, "vip", user)

    async def unvip(self, channel: str, user: str) -> None:
        await self.command(channel, "unvip", user)

    async def mods(self, channel: str) -> None:
        await self.command(channel, "mods")

    async def vips(self, channel: str) -> None:
        await self.command(channel, "vips")

    async def raid(self, channel: str, target: str) -> None:
        await self.command(channel, "raid", target)

    async def unraid(self, channel: str) -> None:
        await self.command(channel, "unraid")

    async def marker(self, channel: str, description: str | None = None) -> None:
        await self.command(channel, "marker", *_optional(description))

    async def commercial(self, channel: str, seconds: int | None = None) -> None:
        await self.command(
            channel, "commercial", *_optional(None if seconds is None else str(seconds))
        )

    async def color(self, channel: str, color: str) -> None:
        await self.command(channel, "color", color)

    async def close(self) -> None:
        """Stop sending; this disconnects the whole client."""
        await self._connection.disconnect()


__all__ = ["ChatSender", "EventReceiver", "ErrorReceiver"]
