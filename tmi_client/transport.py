"""Websocket transport carrying IRC lines."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Protocol

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from .errors import TransportError
from .logs.logger import logger


class Transport(Protocol):
    """Line oriented duplex connection used by ``Connection``."""

    async def receive(self) -> str | None:
        """Next inbound line without CRLF, or None once the peer closed."""
        ...

    async def send(self, text: str) -> None: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[str], Awaitable[Transport]]


class WebSocketTransport:
    """``Transport`` over a websocket where frames may hold several lines."""

    def __init__(self, ws: ClientConnection, url: str) -> None:
        self.ws = ws
        self.url = url
        self._pending: deque[str] = deque()

    @classmethod
    async def open(cls, url: str) -> WebSocketTransport:
        try:
            # Keepalive is handled at the IRC level with PING/PONG.
            ws = await connect(url, ping_interval=None)
        except (OSError, TimeoutError, WebSocketException) as e:
            logger.log_event("transport", "error", level=logging.ERROR, error=str(e))
            raise TransportError(
                f"WebSocket connection failed: {e}", data={"url": url}
            ) from e
        logger.log_event("transport", "open", level=logging.DEBUG, url=url)
        return cls(ws, url)

    async def receive(self) -> str | None:
        while not self._pending:
            try:
                frame = await self.ws.recv()
            except ConnectionClosedOK:
                return None
            except ConnectionClosed as e:
                raise TransportError(
                    f"WebSocket closed unexpectedly: {e}", data={"url": self.url}
                ) from e
            if isinstance(frame, bytes):
                frame = frame.decode("utf-8", errors="replace")
            self._pending.extend(line for line in frame.split("\r\n") if line)
        return self._pending.popleft()

    async def send(self, text: str) -> None:
        try:
            await self.ws.send(text)
        except ConnectionClosed as e:
            raise TransportError(
                f"WebSocket send failed: {e}", data={"url": self.url}
            ) from e

    async def close(self) -> None:
        await self.ws.close(code=1000)
        logger.log_event("transport", "closed", level=logging.DEBUG, url=self.url)


async def open_websocket(url: str) -> Transport:
    return await WebSocketTransport.open(url)


__all__ = ["Transport", "TransportFactory", "WebSocketTransport", "open_websocket"]
