"""
WebSocket transport to the OpenWebRX service.

Responsibilities:
- Build the endpoint URL
- Perform a single connect attempt (no retry, no backoff)
- Send text lines and typed documents
- Receive one frame per call
- Run the close handshake
- Abort the transport when the handshake never completes

Non-responsibilities:
- No frame classification
- No session ordering
- No reconnect

Send failures and encoding failures are logged and the message is dropped.
Connect, read and close failures are raised to the caller.
"""

from __future__ import annotations

import asyncio
from typing import Any

from websockets.asyncio.client import ClientConnection, connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from constants import (
    CLOSE_CODE_NORMAL,
    CLOSE_REASON_EMPTY,
    CONNECT_OPEN_TIMEOUT_S,
    WS_MAX_FRAME_BYTES,
    WS_PATH,
    WS_SCHEME,
)
from observability.logger import log_event, now_ms
from protocol.messages import MessageEncodingError, OutboundMessage, encode_message


# -------------------------
# Exceptions
# -------------------------

class TransportError(Exception):
    """Base class for transport errors."""


class ConnectError(TransportError):
    """
    Raised when the single connect attempt fails.

    Fatal: the process logs and exits.
    """


class SendError(TransportError):
    """Raised internally when a frame cannot be written."""


class ReadError(TransportError):
    """
    Raised when a read fails or the connection has closed.

    Terminal for the read loop.
    """

    def __init__(self, message: str, *, code: int | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.reason = reason


class CloseError(TransportError):
    """Raised when the close frame cannot be sent."""


# -------------------------
# URL
# -------------------------

def build_url(addr: str) -> str:
    """Return the endpoint URL for a host:port address."""
    return f"{WS_SCHEME}://{addr}{WS_PATH}"


# -------------------------
# Connection
# -------------------------

class Connection:
    """
    One open WebSocket to one remote endpoint.

    Writes come from a single task and reads from a single task;
    no locking is done here.
    """

    def __init__(self, ws: Any, *, url: str) -> None:
        self._ws = ws  # Type: ClientConnection in practice
        self.url = url

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send_text(self, line: str) -> bool:
        """
        Send a raw text line verbatim.

        Returns False if the send failed (already logged).
        """
        try:
            await self._send(line)
        except SendError as e:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "SEND_FAILED",
                "error": str(e),
            })
            return False
        return True

    async def send_message(self, message: OutboundMessage) -> bool:
        """
        Serialize a typed document and send it.

        Returns False if encoding or sending failed (already logged).
        """
        try:
            payload = encode_message(message)
        except MessageEncodingError as e:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "MESSAGE_ENCODE_FAILED",
                "message_type": type(message).__name__,
                "error": str(e),
            })
            return False

        return await self.send_text(payload)

    async def _send(self, payload: str) -> None:
        try:
            await self._ws.send(payload)
        except ConnectionClosed as e:
            raise SendError(f"connection closed: {e}") from e
        except OSError as e:
            raise SendError(f"{type(e).__name__}: {e}") from e

    # ------------------------------------------------------------------
    # Receive
    # ------------------------------------------------------------------

    async def receive(self) -> str | bytes:
        """
        Wait for the next frame.

        Returns str for text frames and bytes for binary frames.

        Raises:
            ReadError once the connection is closed or broken.
        """
        try:
            return await self._ws.recv()
        except ConnectionClosed as e:
            rcvd = e.rcvd
            raise ReadError(
                str(e),
                code=rcvd.code if rcvd is not None else None,
                reason=rcvd.reason if rcvd is not None else None,
            ) from e
        except OSError as e:
            raise ReadError(f"{type(e).__name__}: {e}") from e

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    async def close(
        self,
        *,
        code: int = CLOSE_CODE_NORMAL,
        reason: str = CLOSE_REASON_EMPTY,
    ) -> None:
        """
        Send a close frame and wait for the closing handshake.

        There is no close timeout: this only returns once the server
        acknowledges or the connection drops.

        Raises:
            CloseError if the close frame cannot be sent.
        """
        try:
            await self._ws.close(code=code, reason=reason)
        except (OSError, WebSocketException) as e:
            raise CloseError(f"{type(e).__name__}: {e}") from e

    @property
    def is_closed(self) -> bool:
        """True once the TCP connection has terminated."""
        return self._ws.state is State.CLOSED

    def abort(self) -> None:
        """
        Drop the TCP connection without a closing handshake.

        Used when the session ends while the handshake is still pending
        (second interrupt, failed close).
        """
        self._ws.transport.abort()


# -------------------------
# Connect
# -------------------------

async def connect(url: str) -> Connection:
    """
    Open the WebSocket with a single attempt.

    Raises:
        ConnectError on any failure (DNS, TCP, HTTP upgrade, timeout).
    """
    try:
        ws: ClientConnection = await ws_connect(
            url,
            compression=None,
            open_timeout=CONNECT_OPEN_TIMEOUT_S,
            ping_interval=None,
            close_timeout=None,
            max_size=WS_MAX_FRAME_BYTES,
        )
    except (OSError, ValueError, asyncio.TimeoutError, WebSocketException) as e:
        # ValueError: malformed host:port in the address
        raise ConnectError(f"{type(e).__name__}: {e}") from e

    return Connection(ws, url=url)
