"""
Cross-task signals for the receiver session.

Responsibilities:
- One-shot closure broadcast (dispatcher -> everyone)
- SIGINT delivery into the event loop

Non-responsibilities:
- NO decisions about what to do on closure or interrupt
- NO socket access

This module is infrastructure only.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Any


# ---------------------------------------------------------------------
# Closure broadcast
# ---------------------------------------------------------------------

class ClosedSignal:
    """
    Write-once, many-waiters closure signal.

    Set by the dispatcher when its read loop ends. Never reset.
    Setting it again is a no-op.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


# ---------------------------------------------------------------------
# Interrupts
# ---------------------------------------------------------------------

class InterruptListener:
    """
    Delivers SIGINT to coroutines.

    Each interrupt wakes one wait(). An interrupt that arrives while
    nobody is waiting stays pending until the next wait(); several
    pending interrupts collapse into one.

    Lifecycle:
    1. install() on the running loop
    2. await wait() any number of times
    3. uninstall() on teardown
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._count = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous_handler: Any = None
        self._via_loop = False

    @property
    def count(self) -> int:
        """Total interrupts received."""
        return self._count

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def install(self) -> None:
        """Route SIGINT to this listener. Must be called from the loop."""
        self._loop = asyncio.get_running_loop()
        try:
            self._loop.add_signal_handler(signal.SIGINT, self.notify)
            self._via_loop = True
        except (NotImplementedError, RuntimeError):
            # Windows event loops don't support add_signal_handler.
            self._previous_handler = signal.signal(signal.SIGINT, self._on_signal)
            self._via_loop = False

    def uninstall(self) -> None:
        """Restore default SIGINT handling."""
        if self._loop is None:
            return

        if self._via_loop:
            self._loop.remove_signal_handler(signal.SIGINT)
        else:
            signal.signal(signal.SIGINT, self._previous_handler or signal.default_int_handler)

        self._loop = None

    def notify(self) -> None:
        """Record one interrupt. Safe to call directly from tests."""
        self._count += 1
        self._event.set()

    async def wait(self) -> None:
        """Wait for (and consume) the next interrupt."""
        await self._event.wait()
        self._event.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _on_signal(self, signum: int, frame: Any) -> None:  # pylint: disable=unused-argument
        loop = self._loop
        if loop is not None:
            loop.call_soon_threadsafe(self.notify)
