"""
Shutdown coordinator.

State machine:

    RUNNING --closure signal--> TERMINATED            (REMOTE_CLOSED)
    RUNNING --interrupt-------> CLOSING
    CLOSING --close failed----> TERMINATED            (CLOSE_FAILED)
    CLOSING --closure signal--> TERMINATED            (LOCAL_INTERRUPT)
    CLOSING --interrupt-------> TERMINATED            (LOCAL_INTERRUPT)

Exactly one close frame is sent. After sending it the coordinator waits
for the server to close or for a second interrupt; there is no timeout.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable

from observability.logger import log_event, now_ms
from session.signals import ClosedSignal, InterruptListener
from transport.connection import CloseError, Connection


class ShutdownState(str, Enum):
    RUNNING = "RUNNING"
    CLOSING = "CLOSING"
    TERMINATED = "TERMINATED"


class ShutdownReason(str, Enum):
    """Why the main wait ended."""

    REMOTE_CLOSED = "REMOTE_CLOSED"
    LOCAL_INTERRUPT = "LOCAL_INTERRUPT"
    CLOSE_FAILED = "CLOSE_FAILED"


StateListener = Callable[[ShutdownState], None]


class ShutdownCoordinator:
    """
    Owns the main wait of the receiver session.

    The coordinator only writes a close frame; it never reads.
    """

    def __init__(
        self,
        *,
        connection: Connection,
        closed: ClosedSignal,
        interrupts: InterruptListener,
        session_id: str | None = None,
        on_state: StateListener | None = None,
    ) -> None:
        self._connection = connection
        self._closed = closed
        self._interrupts = interrupts
        self._session_id = session_id
        self._on_state = on_state
        self._state = ShutdownState.RUNNING

    @property
    def state(self) -> ShutdownState:
        return self._state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def wait(self) -> ShutdownReason:
        """Block until the remote closes or the user interrupts."""
        closed_task = asyncio.create_task(self._closed.wait())
        interrupt_task = asyncio.create_task(self._interrupts.wait())

        try:
            await asyncio.wait(
                {closed_task, interrupt_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            await _cancel_all(closed_task, interrupt_task)

        if closed_task.done() and not closed_task.cancelled():
            self._log("CONNECTION_CLOSED")
            self._set_state(ShutdownState.TERMINATED)
            return ShutdownReason.REMOTE_CLOSED

        self._log("INTERRUPT_RECEIVED")
        return await self._close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _close(self) -> ShutdownReason:
        self._set_state(ShutdownState.CLOSING)

        close_task = asyncio.create_task(self._connection.close())
        closed_task = asyncio.create_task(self._closed.wait())
        interrupt_task = asyncio.create_task(self._interrupts.wait())

        pending: set[asyncio.Task[Any]] = {close_task, closed_task, interrupt_task}

        try:
            while True:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )

                if close_task in done:
                    exc = close_task.exception()
                    if isinstance(exc, CloseError):
                        self._log("CLOSE_FAILED", error=str(exc))
                        return ShutdownReason.CLOSE_FAILED
                    if exc is not None:
                        raise exc

                if closed_task in done:
                    self._log("CLOSE_ACKNOWLEDGED")
                    return ShutdownReason.LOCAL_INTERRUPT

                if interrupt_task in done:
                    self._log("SECOND_INTERRUPT", interrupts=self._interrupts.count)
                    return ShutdownReason.LOCAL_INTERRUPT
        finally:
            self._set_state(ShutdownState.TERMINATED)
            await _cancel_all(close_task, closed_task, interrupt_task)

    def _set_state(self, state: ShutdownState) -> None:
        self._state = state
        if self._on_state is not None:
            self._on_state(state)

    def _log(self, event_type: str, **fields: Any) -> None:
        log_event({
            "ts_ms": now_ms(),
            "event_type": event_type,
            "session_id": self._session_id,
            "shutdown_state": self._state.value,
            **fields,
        })


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

async def _cancel_all(*tasks: asyncio.Task[Any]) -> None:
    pending = [t for t in tasks if not t.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

