"""Bounded FIFO of commands accepted for sending but not yet written."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..errors import ClientClosedError, RateLimited, RateLimitReason, TMIError
from ..logs.logger import logger

if TYPE_CHECKING:
    from ..irc.commands import ClientMessage


@dataclass(slots=True)
class PendingSend:
    message: ClientMessage
    ticket: asyncio.Future[None] = field(repr=False)


class IntakeQueue:
    """Holds outbound commands until the write task has sent them.

    The depth counts every accepted command whose ticket is unresolved,
    including the one currently waiting in the rate limiter. Submitting to a
    full queue fails immediately instead of blocking the caller.
    """

    def __init__(self, depth: int) -> None:
        if depth < 1:
            raise ValueError("depth must be at least 1")
        self.depth = depth
        self._items: deque[PendingSend] = deque()
        self._outstanding = 0
        self._wakeup = asyncio.Event()
        self._failure: TMIError | None = None

    def __len__(self) -> int:
        return self._outstanding

    @property
    def closed(self) -> bool:
        return self._failure is not None

    def submit(self, message: ClientMessage) -> asyncio.Future[None]:
        """Queue ``message`` and return a ticket resolved once it is written.

        Raises:
            ClientClosedError: The queue was closed.
            RateLimited: ``depth`` commands are already outstanding.
        """
        if self._failure is not None:
            raise ClientClosedError("Sender is closed") from self._failure
        if self._outstanding >= self.depth:
            logger.log_event("rate", "queue_full", level=logging.WARNING, depth=self.depth)
            raise RateLimited(
                RateLimitReason.QUEUE_FULL,
                f"Intake queue is full ({self.depth} pending)",
                data={"depth": self.depth},
            )
        ticket: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._items.append(PendingSend(message=message, ticket=ticket))
        self._outstanding += 1
        self._wakeup.set()
        return ticket

    async def get(self) -> PendingSend:
        """Wait for the next command; it stays counted until ``complete``."""
        while not self._items:
            if self._failure is not None:
                raise ClientClosedError("Sender is closed") from self._failure
            self._wakeup.clear()
            await self._wakeup.wait()
        return self._items.popleft()

    def complete(self, item: PendingSend, error: BaseException | None = None) -> None:
        self._outstanding = max(0, self._outstanding - 1)
        if item.ticket.done():
            return
        if error is None:
            item.ticket.set_result(None)
        else:
            item.ticket.set_exception(error)

    def close(self, error: TMIError) -> None:
        """Fail every queued ticket with ``error`` and refuse new commands."""
        if self._failure is not None:
            return
        self._failure = error
        while self._items:
            self.complete(self._items.popleft(), error)
        self._wakeup.set()


__all__ = ["IntakeQueue", "PendingSend"]
