"""
Receiver session.

Responsibilities:
- Owns the single connection for the process lifetime
- Tracks connection_status independently of the shutdown state machine
- Spawns the dispatcher task
- Runs the handshake, starts audio, then hands over to the shutdown coordinator
- Logs a summary when the session ends

NOT responsible for:
- Frame classification (protocol.frames)
- Wire encoding (protocol.messages)
- Reconnecting: closure is terminal
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TYPE_CHECKING
from uuid import uuid4

from observability.logger import log_event, now_ms
from observability.metrics import start_timer, stop_timer, timed
from session.connection_status import ConnectionStatus
from session.dispatcher import MessageDispatcher
from session.initializer import initialize_session, start_audio
from session.shutdown import ShutdownCoordinator, ShutdownReason, ShutdownState
from session.signals import ClosedSignal, InterruptListener
from transport.connection import Connection, ConnectError, build_url, connect

if TYPE_CHECKING:
    from config import ClientConfig


ConnectFn = Callable[[str], Awaitable[Connection]]


def _new_session_id() -> str:
    return f"rx_{uuid4().hex[:12]}"


class ReceiverSession:
    """
    One process == one receiver session == one connection.
    """

    def __init__(
        self,
        *,
        config: ClientConfig,
        interrupts: InterruptListener | None = None,
        connect_fn: ConnectFn = connect,
        install_signal_handlers: bool = True,
    ) -> None:
        self._config = config
        self._interrupts = interrupts if interrupts is not None else InterruptListener()
        self._connect = connect_fn
        self._install_signal_handlers = install_signal_handlers

        self.session_id = _new_session_id()
        self.connection_status = ConnectionStatus.DOWN
        self.dispatcher: MessageDispatcher | None = None

    @property
    def interrupts(self) -> InterruptListener:
        return self._interrupts

    async def run(self) -> ShutdownReason:
        """
        Run the session to completion.

        Raises:
            ConnectError if the connection cannot be opened.
        """
        if self._install_signal_handlers:
            self._interrupts.install()

        try:
            connection = await self._open()
            return await self._run_connected(connection)
        finally:
            if self._install_signal_handlers:
                self._interrupts.uninstall()

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _open(self) -> Connection:
        url = build_url(self._config.addr)
        self._set_status(ConnectionStatus.CONNECTING)
        self._log("CONNECTING", url=url)

        try:
            with timed("connect_latency", session_id=self.session_id):
                connection = await self._connect(url)
        except ConnectError:
            self._set_status(ConnectionStatus.DOWN)
            raise

        self._set_status(ConnectionStatus.UP)
        self._log("CONNECTED", url=url)
        return connection

    async def _run_connected(self, connection: Connection) -> ShutdownReason:
        closed = ClosedSignal()
        self.dispatcher = MessageDispatcher(
            connection=connection,
            closed=closed,
            session_id=self.session_id,
        )
        dispatcher_task = asyncio.create_task(self.dispatcher.run())

        timer_id = start_timer("session_duration")
        reason: ShutdownReason | None = None

        try:
            await initialize_session(connection, self._config)
            await start_audio(connection)

            coordinator = ShutdownCoordinator(
                connection=connection,
                closed=closed,
                interrupts=self._interrupts,
                session_id=self.session_id,
                on_state=self._on_shutdown_state,
            )
            reason = await coordinator.wait()
            return reason
        finally:
            if not dispatcher_task.done():
                dispatcher_task.cancel()
            (outcome,) = await asyncio.gather(dispatcher_task, return_exceptions=True)
            if isinstance(outcome, BaseException) and not isinstance(
                outcome, asyncio.CancelledError
            ):
                self._log(
                    "DISPATCHER_FAILED",
                    error=f"{type(outcome).__name__}: {outcome}",
                )

            if not connection.is_closed:
                connection.abort()
                self._log("CONNECTION_ABORTED")

            self._set_status(ConnectionStatus.DOWN)
            stop_timer(timer_id, session_id=self.session_id)
            self._log(
                "SESSION_SUMMARY",
                reason=reason.value if reason is not None else None,
                frames_total=self.dispatcher.counters.total(),
                frames=self.dispatcher.counters.as_dict(),
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _on_shutdown_state(self, state: ShutdownState) -> None:
        if state is ShutdownState.CLOSING:
            self._set_status(ConnectionStatus.CLOSING)

    def _set_status(self, status: ConnectionStatus) -> None:
        self.connection_status = status

    def _log(self, event_type: str, **fields: object) -> None:
        log_event({
            "ts_ms": now_ms(),
            "event_type": event_type,
            "session_id": self.session_id,
            "connection_status": self.connection_status.value,
            **fields,
        })
