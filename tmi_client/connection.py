"""Connection orchestrator: handshake, read/write tasks and shutdown."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from enum import Enum, auto
from typing import Any

from .channels import ChatSender, ErrorReceiver, EventReceiver
from .config import ClientConfig
from .errors import (
    ClientClosedError,
    EncodeError,
    HandshakeTimeoutError,
    ParseError,
    ProtocolError,
    RateLimited,
    TMIError,
    TransportError,
)
from .irc.commands import CapRequest, ClientMessage, Nick, PartChannel, Pass, Ping, Pong
from .irc.dedup import MessageDeduplicator
from .irc.encoder import encode
from .irc.events import (
    Capability,
    CapabilitySubcommand,
    ConnectMessage,
    Event,
    Notice,
    Reconnect,
)
from .irc.events import Ping as PingEvent
from .irc.events import Pong as PongEvent
from .irc.mapper import map_message, privilege_update, slow_mode_update
from .irc.parser import parse_line
from .logs.logger import logger
from .rate.intake import IntakeQueue, PendingSend
from .rate.limiter import RateLimiter
from .transport import Transport, TransportFactory, open_websocket

AUTH_FAILURE_NOTICES = (
    "Login authentication failed",
    "Login unsuccessful",
    "Improperly formatted auth",
)
DEFAULT_PING_ARGUMENT = "tmi.twitch.tv"


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    AUTHENTICATING = auto()
    NEGOTIATING_CAPABILITIES = auto()
    READY = auto()
    CLOSING = auto()
    CLOSED = auto()
    FAILED = auto()


_TERMINAL_STATES = (ConnectionState.CLOSING, ConnectionState.CLOSED, ConnectionState.FAILED)


class Connection:
    """Owns one chat session from handshake to shutdown.

    After ``connect`` succeeds three tasks run until the session ends: the
    read task parses lines and feeds the event channel, the write task takes
    commands from the intake queue through the rate limiter onto the wire,
    and the keepalive task answers server PINGs without touching the limiter.
    An optional heartbeat task probes the server with its own PINGs.

    The first fatal error moves the connection to ``FAILED``: it is pushed to
    the error channel once, both receivers close and every pending send fails
    with that same error.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        self.config = config
        self._transport_factory = transport_factory or open_websocket
        self.state = ConnectionState.DISCONNECTED
        self.failure: TMIError | None = None

        self.limiter = RateLimiter(config.rate_limits)
        self.intake = IntakeQueue(config.intake_queue_depth)
        self.dedup = MessageDeduplicator() if config.dedup_messages else None
        self.events = EventReceiver(self, config.event_buffer)
        self.errors = ErrorReceiver(config.error_buffer)
        self.sender = ChatSender(self)

        self._transport: Transport | None = None
        self._write_lock = asyncio.Lock()
        self._tasks: list[asyncio.Task[None]] = []
        self._in_flight: PendingSend | None = None
        self._pong_requests: asyncio.Queue[str] = asyncio.Queue()
        self._pong_received = asyncio.Event()
        self._finished = asyncio.Event()

    # ------------------------------ State -------------------------------- #
    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self.state
        if old_state is new_state:
            return
        self.state = new_state
        logger.log_event(
            "connection",
            "state_change",
            level=logging.DEBUG,
            user=self.config.username,
            old_state=old_state.name,
            new_state=new_state.name,
        )

    @property
    def is_ready(self) -> bool:
        return self.state is ConnectionState.READY

    async def wait_closed(self) -> None:
        await self._finished.wait()

    # ---------------------------- Handshake ------------------------------ #
    async def connect(self) -> None:
        """Open the transport, log in and negotiate capabilities.

        Raises:
            ProtocolError: Login was rejected or a required capability refused.
            HandshakeTimeoutError: The handshake exceeded ``handshake_timeout``.
            TransportError: The transport failed or closed during the handshake.
        """
        if self.state is not ConnectionState.DISCONNECTED:
            raise ProtocolError(f"Cannot connect from state {self.state.name}")
        self._set_state(ConnectionState.CONNECTING)
        logger.log_event(
            "connection", "connect_start", level=logging.DEBUG,
            user=self.config.username, url=self.config.url,
        )
        try:
            async with asyncio.timeout(self.config.handshake_timeout):
                self._transport = await self._transport_factory(self.config.url)
                await self._handshake()
        except TimeoutError as e:
            logger.log_event(
                "connection", "handshake_timeout", level=logging.ERROR,
                user=self.config.username, timeout=self.config.handshake_timeout,
            )
            error = HandshakeTimeoutError(
                f"Handshake did not complete within {self.config.handshake_timeout}s",
                data={"state": self.state.name},
            )
            await self._fail(error)
            raise error from e
        except TMIError as e:
            await self._fail(e)
            raise
        except asyncio.CancelledError:
            await self._shutdown(ClientClosedError("Connect was cancelled"))
            self._set_state(ConnectionState.CLOSED)
            raise

        self._set_state(ConnectionState.READY)
        logger.log_event("connection", "ready", user=self.config.username)
        self._spawn(self._read_loop(), "read")
        self._spawn(self._write_loop(), "write")
        self._spawn(self._keepalive_loop(), "keepalive")
        if self.config.heartbeat_interval is not None:
            self._spawn(self._heartbeat_loop(), "heartbeat")

    async def _handshake(self) -> None:
        self._set_state(ConnectionState.AUTHENTICATING)
        await self._write_line(encode(Pass(token=self.config.token)))
        await self._write_line(encode(Nick(nickname=self.config.username)))
        while True:
            event = await self._next_handshake_event()
            if isinstance(event, ConnectMessage) and event.code == "001":
                break
            if isinstance(event, Notice) and any(
                text in event.message for text in AUTH_FAILURE_NOTICES
            ):
                logger.log_event(
                    "connection", "auth_failed", level=logging.ERROR,
                    user=self.config.username, reason=event.message,
                )
                raise ProtocolError(
                    f"Authentication failed: {event.message}",
                    data={"notice": event.message},
                )
        logger.log_event("connection", "authenticated", user=self.config.username)

        capabilities = [str(cap) for cap in self.config.capabilities]
        if not capabilities:
            return
        self._set_state(ConnectionState.NEGOTIATING_CAPABILITIES)
        logger.log_event(
            "connection", "cap_request", level=logging.DEBUG,
            user=self.config.username, capabilities=" ".join(capabilities),
        )
        await self._write_line(encode(CapRequest(capabilities=tuple(capabilities))))
        pending = set(capabilities)
        refused: set[str] = set()
        while pending:
            event = await self._next_handshake_event()
            if not isinstance(event, Capability):
                continue
            answered = pending.intersection(event.capabilities)
            if event.subcommand is CapabilitySubcommand.ACK:
                logger.log_event(
                    "connection", "cap_ack", level=logging.DEBUG,
                    user=self.config.username, capabilities=" ".join(sorted(answered)),
                )
            elif event.subcommand is CapabilitySubcommand.NAK:
                refused |= answered
                logger.log_event(
                    "connection", "cap_nak", level=logging.WARNING,
                    user=self.config.username, capabilities=" ".join(sorted(answered)),
                )
            else:
                continue
            pending -= answered

        required_refused = refused.intersection(
            str(cap) for cap in self.config.required_capabilities
        )
        if required_refused:
            raise ProtocolError(
                f"Required capabilities refused: {', '.join(sorted(required_refused))}",
                data={"refused": sorted(required_refused)},
            )

    async def _next_handshake_event(self) -> Event:
        """Read the next parseable line as an event, answering PINGs.

        Handshake traffic only drives the handshake and is never forwarded to
        the event channel; limiter side effects still apply.
        """
        while True:
            line = await self._receive_line()
            if line is None:
                raise TransportError("Connection closed during handshake")
            try:
                raw = parse_line(line)
            except ParseError as e:
                self._report(e)
                continue
            event = map_message(raw)
            if isinstance(event, PingEvent):
                await self._write_line(encode(Pong(argument=event.argument or DEFAULT_PING_ARGUMENT)))
            self._observe(event)
            return event

    # ------------------------------ Tasks -------------------------------- #
    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        task = asyncio.create_task(self._supervise(coro, name), name=f"tmi-{name}")
        self._tasks.append(task)

    async def _supervise(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        try:
            await coro
        except TMIError as e:
            await self._fail(e)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "connection", "failed", level=logging.ERROR, exc_info=True,
                user=self.config.username, error=f"{name} task crashed: {e}",
            )
            error = TMIError(f"Internal {name} task failure: {e}", data={"task": name})
            error.__cause__ = e
            await self._fail(error)

    async def _read_loop(self) -> None:
        while True:
            line = await self._receive_line()
            if line is None:
                raise TransportError("Connection closed by server")
            try:
                raw = parse_line(line)
            except ParseError as e:
                self._report(e)
                continue
            event = map_message(raw)
            if isinstance(event, PingEvent):
                self._pong_requests.put_nowait(event.argument or DEFAULT_PING_ARGUMENT)
            self._observe(event)
            await self.events._put(event)

    async def _write_loop(self) -> None:
        while True:
            item = await self.intake.get()
            self._in_flight = item
            message = item.message
            try:
                await self.limiter.acquire(
                    message.category,
                    message.rate_limit_channel,
                    timeout=self.config.send_timeout,
                )
            except RateLimited as e:
                self._in_flight = None
                self.intake.complete(item, e)
                continue
            if self.dedup is not None:
                message = self.dedup.apply(message)
            try:
                line = encode(message)
            except EncodeError as e:
                self._in_flight = None
                logger.log_event(
                    "sender", "encode_error", level=logging.WARNING,
                    user=self.config.username, error=str(e),
                )
                self.intake.complete(item, e)
                continue
            await self._write_line(line)
            if isinstance(message, PartChannel):
                self.limiter.forget_channel(message.channel)
                if self.dedup is not None:
                    self.dedup.forget(message.channel)
            self._in_flight = None
            self.intake.complete(item)

    async def _keepalive_loop(self) -> None:
        while True:
            argument = await self._pong_requests.get()
            logger.log_event(
                "connection", "ping_received", level=logging.DEBUG, user=self.config.username
            )
            await self._write_line(encode(Pong(argument=argument)))

    async def _heartbeat_loop(self) -> None:
        interval = self.config.heartbeat_interval
        timeout = self.config.heartbeat_timeout
        while True:
            await asyncio.sleep(interval)
            self._pong_received.clear()
            await self._write_line(encode(Ping(argument=DEFAULT_PING_ARGUMENT)))
            logger.log_event(
                "connection", "heartbeat_sent", level=logging.DEBUG, user=self.config.username
            )
            try:
                await asyncio.wait_for(self._pong_received.wait(), timeout=timeout)
            except TimeoutError as e:
                logger.log_event(
                    "connection", "heartbeat_timeout", level=logging.WARNING,
                    user=self.config.username, timeout=timeout,
                )
                raise TransportError(
                    f"No PONG received within {timeout}s", data={"timeout": timeout}
                ) from e

    # ------------------------------ Helpers ------------------------------ #
    def _observe(self, event: Event) -> None:
        """Apply limiter side effects of an inbound event."""
        update = privilege_update(event)
        if update is not None:
            self.limiter.update_privilege(update.channel, update.tier)
        slow = slow_mode_update(event)
        if slow is not None:
            self.limiter.set_slow_mode(slow.channel, slow.seconds)
        if isinstance(event, PongEvent):
            self._pong_received.set()
        elif isinstance(event, Reconnect):
            logger.log_event(
                "connection", "reconnect_requested", level=logging.WARNING,
                user=self.config.username,
            )

    def _report(self, error: TMIError) -> None:
        if isinstance(error, ParseError):
            logger.log_event(
                "parser", "parse_error", level=logging.WARNING,
                user=self.config.username, line=error.line,
            )
        self.errors._push(error)

    async def _receive_line(self) -> str | None:
        if self._transport is None:
            raise TransportError("Transport is not open")
        line = await self._transport.receive()
        if line is not None:
            logger.log_event("transport", "receive", level=logging.DEBUG, line=line)
        return line

    async def _write_line(self, line: str) -> None:
        if self._transport is None:
            raise TransportError("Transport is not open")
        async with self._write_lock:
            await self._transport.send(line)
        shown = "PASS oauth:***" if line.startswith("PASS ") else line.rstrip("\r\n")
        logger.log_event("transport", "send", level=logging.DEBUG, line=shown)

    # ---------------------------- Public API ----------------------------- #
    def submit(self, message: ClientMessage) -> asyncio.Future[None]:
        """Validate and queue a command; see ``ChatSender.submit``."""
        if self.state in _TERMINAL_STATES:
            raise ClientClosedError("Connection is closed") from self.failure
        encode(message)
        return self.intake.submit(message)

    async def disconnect(self) -> None:
        """Close the session; pending sends fail with ``ClientClosedError``."""
        if self.state in _TERMINAL_STATES:
            await self._finished.wait()
            return
        logger.log_event("connection", "disconnect_start", user=self.config.username)
        self._set_state(ConnectionState.CLOSING)
        await self._shutdown(ClientClosedError("Client disconnected"))
        self._set_state(ConnectionState.CLOSED)
        logger.log_event("connection", "closed", user=self.config.username)

    async def _fail(self, error: TMIError) -> None:
        if self.state in _TERMINAL_STATES:
            return
        self.failure = error
        self._set_state(ConnectionState.FAILED)
        logger.log_event(
            "connection", "failed", level=logging.ERROR,
            user=self.config.username, error=str(error),
        )
        self.errors._push(error)
        await self._shutdown(error)

    async def _shutdown(self, error: TMIError) -> None:
        self.limiter.close()
        self.intake.close(error)
        if self._in_flight is not None:
            self.intake.complete(self._in_flight, error)
            self._in_flight = None

        current = asyncio.current_task()
        others = [t for t in self._tasks if t is not current and not t.done()]
        for task in others:
            task.cancel()
        if others:
            await asyncio.gather(*others, return_exceptions=True)

        if self._transport is not None:
            try:
                await self._transport.close()
            except (TMIError, OSError) as e:
                logger.log_event(
                    "transport", "error", level=logging.DEBUG, error=str(e)
                )
        self.events._finish()
        self.errors._finish()
        self._finished.set()


__all__ = ["Connection", "ConnectionState", "AUTH_FAILURE_NOTICES"]
