import asyncio
import os
from collections.abc import Callable

import pytest
import pytest_asyncio

from tmi_client import ClientConfig, connect

# Keep client logs quiet and deterministic during tests
os.environ.setdefault("DEBUG", "false")

WELCOME = [
    ":tmi.twitch.tv 001 {user} :Welcome, GLHF!",
    ":tmi.twitch.tv 002 {user} :Your host is tmi.twitch.tv",
    ":tmi.twitch.tv 003 {user} :This server is rather new",
    ":tmi.twitch.tv 004 {user} :-",
    ":tmi.twitch.tv 375 {user} :-",
    ":tmi.twitch.tv 372 {user} :You are in a maze of twisty passages, all alike.",
    ":tmi.twitch.tv 376 {user} :>",
]

Reply = Callable[[str], list[str]]


class FakeTransport:
    """Scripted in-memory transport.

    Lines written by the client are recorded in ``sent``; ``replies`` maps a
    line prefix to a function producing the server's answer lines.
    """

    def __init__(self, replies: list[tuple[str, Reply]] | None = None) -> None:
        self.sent: list[str] = []
        self.replies: list[tuple[str, Reply]] = list(replies or [])
        self.url: str | None = None
        self.closed = False
        self.send_error: Exception | None = None
        self._incoming: asyncio.Queue[str | None] = asyncio.Queue()

    @classmethod
    def twitch(
        cls,
        user: str = "testbot",
        *,
        nak: tuple[str, ...] = (),
        auth_notice: str | None = None,
    ) -> "FakeTransport":
        def on_nick(_line: str) -> list[str]:
            if auth_notice is not None:
                return [f":tmi.twitch.tv NOTICE * :{auth_notice}"]
            return [line.format(user=user) for line in WELCOME]

        def on_cap(line: str) -> list[str]:
            requested = line.split(":", 1)[1].split()
            acked = [c for c in requested if c not in nak]
            refused = [c for c in requested if c in nak]
            out = []
            if acked:
                out.append(f":tmi.twitch.tv CAP * ACK :{' '.join(acked)}")
            if refused:
                out.append(f":tmi.twitch.tv CAP * NAK :{' '.join(refused)}")
            return out

        return cls([("NICK ", on_nick), ("CAP REQ ", on_cap)])

    async def factory(self, url: str) -> "FakeTransport":
        self.url = url
        return self

    def feed(self, *lines: str) -> None:
        for line in lines:
            self._incoming.put_nowait(line)

    def close_remote(self) -> None:
        self._incoming.put_nowait(None)

    @property
    def lines(self) -> list[str]:
        return [line.rstrip("\r\n") for line in self.sent]

    async def receive(self) -> str | None:
        if self.closed:
            return None
        line = await self._incoming.get()
        if line is None:
            self.closed = True
        return line

    async def send(self, text: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(text)
        for prefix, reply in self.replies:
            if text.startswith(prefix):
                self.feed(*reply(text.rstrip("\r\n")))

    async def close(self) -> None:
        self.closed = True
        self._incoming.put_nowait(None)


async def wait_for_line(
    transport: FakeTransport, predicate: Callable[[str], bool], timeout: float = 1.0
) -> str:
    """Poll until the client has written a line matching ``predicate``."""
    async with asyncio.timeout(timeout):
        while True:
            for line in transport.lines:
                if predicate(line):
                    return line
            await asyncio.sleep(0.005)


def make_config(**overrides: object) -> ClientConfig:
    values: dict[str, object] = {
        "username": "testbot",
        "token": "abc123",
        "handshake_timeout": 1.0,
        "heartbeat_interval": None,
    }
    values.update(overrides)
    return ClientConfig(**values)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport.twitch()


@pytest_asyncio.fixture
async def make_client():
    """Factory connecting clients over fake transports; disconnects them after."""
    clients = []

    async def factory(transport: FakeTransport | None = None, **overrides: object):
        transport = transport or FakeTransport.twitch()
        client = await connect(make_config(**overrides), transport_factory=transport.factory)
        clients.append(client)
        return client, transport

    yield factory
    for client in clients:
        await client.disconnect()
