# client/protocol/frames.py
"""
Inbound frame classification.

Two-level dispatch, stateless per frame:

- Binary frames: first byte is a type tag, the rest is an opaque payload.
    1  FFT data         (not decoded)
    2  audio samples    (not decoded)
    4  HD audio samples (not decoded)
    *  anything else    (unhandled)
  An empty binary frame carries no tag and is ignored.

- Text frames: a JSON object routed on its `type` field, or a plain
  handshake echo line starting with "CLIENT DE SERVER".

Usage example:

    frame = classify_frame(raw)
    if frame.frame_class is FrameClass.SMETER:
        log_event({"event_type": "SMETER", "value": frame.value})
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from constants import (
    MSG_TYPE_SMETER,
    SERVER_HANDSHAKE_PREFIX,
    TAG_AUDIO,
    TAG_FFT,
    TAG_HD_AUDIO,
)


class FrameKind(str, Enum):
    """Transport-level frame kind."""

    TEXT = "TEXT"
    BINARY = "BINARY"
    UNKNOWN = "UNKNOWN"


class FrameClass(str, Enum):
    """
    Classification of a single inbound frame.

    Every inbound frame maps to exactly one class.
    """

    # Binary
    EMPTY_BINARY = "EMPTY_BINARY"
    FFT = "FFT"
    AUDIO = "AUDIO"
    HD_AUDIO = "HD_AUDIO"
    UNHANDLED_BINARY = "UNHANDLED_BINARY"

    # Text
    SMETER = "SMETER"
    STATUS_DOCUMENT = "STATUS_DOCUMENT"
    HANDSHAKE_ECHO = "HANDSHAKE_ECHO"
    PARSE_ERROR = "PARSE_ERROR"

    # Neither str nor bytes
    UNKNOWN_FRAME = "UNKNOWN_FRAME"


_BINARY_TAGS: dict[int, FrameClass] = {
    TAG_FFT: FrameClass.FFT,
    TAG_AUDIO: FrameClass.AUDIO,
    TAG_HD_AUDIO: FrameClass.HD_AUDIO,
}


# -------------------------
# Classified frames
# -------------------------

@dataclass(frozen=True)
class InboundFrame:
    """
    Result of classifying one inbound frame.

    tag / payload_len:
        Binary frames only. payload_len excludes the tag byte.

    doc_type / value:
        Decoded documents only. value is only meaningful for SMETER.

    text / error:
        Text frames that were not decoded as a document.
    """
    kind: FrameKind
    frame_class: FrameClass
    tag: int | None = None
    payload_len: int = 0
    doc_type: Any = None
    value: Any = None
    text: str | None = None
    error: str | None = None


# -------------------------
# Binary
# -------------------------

def classify_binary(message: bytes) -> InboundFrame:
    """
    Classify a binary frame by its leading tag byte.

    Pure function; total over all byte values; never raises.
    """
    if len(message) == 0:
        return InboundFrame(kind=FrameKind.BINARY, frame_class=FrameClass.EMPTY_BINARY)

    tag = message[0]

    return InboundFrame(
        kind=FrameKind.BINARY,
        frame_class=_BINARY_TAGS.get(tag, FrameClass.UNHANDLED_BINARY),
        tag=tag,
        payload_len=len(message) - 1,
    )


# -------------------------
# Text
# -------------------------

def classify_text(message: str) -> InboundFrame:
    """
    Classify a text frame.

    Decoding is attempted first; JSON null counts as an empty document.
    A frame that does not decode to a JSON object is a handshake echo
    when it carries the server prefix, and a parse error otherwise.

    Pure function; never raises.
    """
    try:
        data = json.loads(message)
    except json.JSONDecodeError as e:
        return _undecodable_text(message, str(e))

    # A bare null decodes to an empty document
    if data is None:
        data = {}

    if not isinstance(data, dict):
        return _undecodable_text(
            message, f"expected a JSON object, got {type(data).__name__}"
        )

    doc_type = data.get("type")

    if doc_type == MSG_TYPE_SMETER and "value" in data:
        return InboundFrame(
            kind=FrameKind.TEXT,
            frame_class=FrameClass.SMETER,
            doc_type=doc_type,
            value=data["value"],
        )

    return InboundFrame(
        kind=FrameKind.TEXT,
        frame_class=FrameClass.STATUS_DOCUMENT,
        doc_type=doc_type,
    )


def _undecodable_text(message: str, error: str) -> InboundFrame:
    if message.startswith(SERVER_HANDSHAKE_PREFIX):
        return InboundFrame(
            kind=FrameKind.TEXT,
            frame_class=FrameClass.HANDSHAKE_ECHO,
            text=message,
        )

    return InboundFrame(
        kind=FrameKind.TEXT,
        frame_class=FrameClass.PARSE_ERROR,
        text=message,
        error=error,
    )


# -------------------------
# Entry point
# -------------------------

def classify_frame(message: Any) -> InboundFrame:
    """
    Classify one frame as returned by the transport.

    str is a text frame, bytes-like is a binary frame; anything else
    is reported as UNKNOWN_FRAME.
    """
    if isinstance(message, str):
        return classify_text(message)

    if isinstance(message, (bytes, bytearray, memoryview)):
        return classify_binary(bytes(message))

    return InboundFrame(kind=FrameKind.UNKNOWN, frame_class=FrameClass.UNKNOWN_FRAME)
