"""Top level entry point returning the split sender / receiver handles."""

from __future__ import annotations

from dataclasses import dataclass

from .channels import ChatSender, ErrorReceiver, EventReceiver
from .config import ClientConfig
from .connection import Connection, ConnectionState
from .transport import TransportFactory


@dataclass(frozen=True, slots=True)
class ChatClient:
    """Handles to a ready connection.

    The three channels can be handed to different tasks. Closing the sender
    or the event receiver, or calling ``disconnect``, ends the session.
    """

    sender: ChatSender
    events: EventReceiver
    errors: ErrorReceiver
    connection: Connection

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    async def disconnect(self) -> None:
        await self.connection.disconnect()

    async def __aenter__(self) -> ChatClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()


async def connect(
    config: ClientConfig, *, transport_factory: TransportFactory | None = None
) -> ChatClient:
    """Connect, log in and negotiate capabilities.

    Returns once the connection is ready. A failed handshake raises the error,
    which is also the only item left on the (closed) error channel.
    """
    connection = Connection(config, transport_factory)
    await connection.connect()
    return ChatClient(
        sender=connection.sender,
        events=connection.events,
        errors=connection.errors,
        connection=connection,
    )


__all__ = ["ChatClient", "connect"]
