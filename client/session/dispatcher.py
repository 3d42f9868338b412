"""
Inbound message dispatcher.

Runs as its own asyncio task for the lifetime of the connection:
- Reads one frame at a time
- Classifies it (protocol.frames)
- Logs the frames that carry something worth reporting
- Counts every frame by class

On read error the loop ends and the closure signal is set. The signal is
set on every exit path, including cancellation, and is never reset.

The dispatcher never writes to the connection.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from observability.logger import log_event, now_ms
from protocol.frames import FrameClass, InboundFrame, classify_frame
from session.signals import ClosedSignal
from transport.connection import Connection, ReadError


@dataclass
class FrameCounters:
    """Per-class frame counts for the session summary."""

    by_class: Counter[FrameClass] = field(default_factory=Counter)

    def record(self, frame_class: FrameClass) -> None:
        self.by_class[frame_class] += 1

    def total(self) -> int:
        return sum(self.by_class.values())

    def as_dict(self) -> dict[str, int]:
        return {fc.value: n for fc, n in self.by_class.items()}


class MessageDispatcher:
    """Read loop for one connection."""

    def __init__(
        self,
        *,
        connection: Connection,
        closed: ClosedSignal,
        session_id: str | None = None,
    ) -> None:
        self._connection = connection
        self._closed = closed
        self._session_id = session_id
        self.counters = FrameCounters()

    async def run(self) -> None:
        """Read until the connection fails, then signal closure."""
        try:
            while True:
                try:
                    message = await self._connection.receive()
                except ReadError as e:
                    log_event({
                        "ts_ms": now_ms(),
                        "event_type": "READ_ERROR",
                        "session_id": self._session_id,
                        "error": str(e),
                        "close_code": e.code,
                        "close_reason": e.reason,
                    })
                    return

                self.handle_frame(message)
        finally:
            self._closed.set()

    def handle_frame(self, message: Any) -> InboundFrame:
        """Classify, count and log a single frame."""
        frame = classify_frame(message)
        self.counters.record(frame.frame_class)

        event = self._event_for(frame)
        if event is not None:
            log_event({
                "ts_ms": now_ms(),
                "session_id": self._session_id,
                **event,
            })

        return frame

    @staticmethod
    def _event_for(frame: InboundFrame) -> dict[str, Any] | None:
        fc = frame.frame_class

        if fc is FrameClass.AUDIO:
            return {"event_type": "AUDIO_FRAME_RECEIVED", "payload_len": frame.payload_len}

        if fc is FrameClass.HD_AUDIO:
            return {"event_type": "HD_AUDIO_FRAME_RECEIVED", "payload_len": frame.payload_len}

        if fc is FrameClass.UNHANDLED_BINARY:
            return {
                "event_type": "UNHANDLED_BINARY_FRAME",
                "tag": frame.tag,
                "payload_len": frame.payload_len,
            }

        if fc is FrameClass.SMETER:
            return {"event_type": "SMETER", "value": frame.value}

        if fc is FrameClass.HANDSHAKE_ECHO:
            return {"event_type": "HANDSHAKE_ECHO", "text": frame.text}

        if fc is FrameClass.PARSE_ERROR:
            return {
                "event_type": "TEXT_PARSE_ERROR",
                "error": frame.error,
                "raw": frame.text,
            }

        if fc is FrameClass.UNKNOWN_FRAME:
            return {"event_type": "UNKNOWN_FRAME_TYPE"}

        # EMPTY_BINARY, FFT (not decoded), STATUS_DOCUMENT: nothing to report
        return None
