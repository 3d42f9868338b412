# client/protocol/messages.py
"""
Typed outbound control messages.

Every structured message carries a `type` discriminator the server routes on:

    {"type": "connectionproperties", "params": {"output_rate": ..., "hd_output_rate": ...}}
    {"type": "dspcontrol", "params": {...demodulator settings...}}
    {"type": "dspcontrol", "action": "start"}

The handshake line is not a document and is sent verbatim:

    SERVER DE CLIENT client=openwebrx.js type=receiver

Usage example:

    msg = DspControl(params=DspParams(squelch_level=-100, offset_freq=2500))
    await connection.send_text(encode_message(msg))
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Union

from constants import (
    AUDIO_SERVICE_ID,
    DEFAULT_FREQUENCY_OFFSET_HZ,
    DEFAULT_SQUELCH_LEVEL,
    DEMOD_MODE_NFM,
    DMR_FILTER,
    DSP_ACTION_START,
    FILTER_HIGH_CUT_HZ,
    FILTER_LOW_CUT_HZ,
    HD_OUTPUT_RATE_HZ,
    MSG_TYPE_CONNECTION_PROPERTIES,
    MSG_TYPE_DSP_CONTROL,
    OUTPUT_RATE_HZ,
    SECONDARY_MOD_DISABLED,
)


# -------------------------
# Exceptions
# -------------------------

class MessageEncodingError(Exception):
    """
    Raised when an outbound message cannot be serialized.

    The caller logs and drops the message; it is never retried.
    """


# -------------------------
# Message types
# -------------------------

@dataclass(frozen=True)
class ConnectionPropertiesParams:
    output_rate: int = OUTPUT_RATE_HZ
    hd_output_rate: int = HD_OUTPUT_RATE_HZ


@dataclass(frozen=True)
class ConnectionProperties:
    """Fixes the audio sample rates the server resamples to."""
    params: ConnectionPropertiesParams = field(default_factory=ConnectionPropertiesParams)
    type: str = field(default=MSG_TYPE_CONNECTION_PROPERTIES, init=False)


@dataclass(frozen=True)
class DspParams:
    """
    Demodulator settings.

    Mode and filter are fixed for this client; squelch and offset
    come from configuration.
    """
    mod: str = DEMOD_MODE_NFM
    low_cut: int = FILTER_LOW_CUT_HZ
    high_cut: int = FILTER_HIGH_CUT_HZ
    dmr_filter: int = DMR_FILTER
    audio_service_id: int = AUDIO_SERVICE_ID
    secondary_mod: bool = SECONDARY_MOD_DISABLED
    squelch_level: int = DEFAULT_SQUELCH_LEVEL
    offset_freq: int = DEFAULT_FREQUENCY_OFFSET_HZ


@dataclass(frozen=True)
class DspControl:
    """Configures the demodulator for the session."""
    params: DspParams = field(default_factory=DspParams)
    type: str = field(default=MSG_TYPE_DSP_CONTROL, init=False)


@dataclass(frozen=True)
class DspAction:
    """Control verb for the demodulator (only "start" is used)."""
    action: str = DSP_ACTION_START
    type: str = field(default=MSG_TYPE_DSP_CONTROL, init=False)


OutboundMessage = Union[ConnectionProperties, DspControl, DspAction]


# -------------------------
# Serialization
# -------------------------

def message_to_dict(message: OutboundMessage) -> dict[str, Any]:
    """Return the document shape of a typed message."""
    return asdict(message)


def encode_message(message: OutboundMessage) -> str:
    """
    Serialize a typed message to a JSON text frame.

    Raises:
        MessageEncodingError if the message cannot be serialized.
    """
    try:
        return json.dumps(message_to_dict(message), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise MessageEncodingError(
            f"cannot encode {type(message).__name__}: {e}"
        ) from e
