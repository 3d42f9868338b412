"""
Session handshake and audio start.

The server needs the session identity and DSP parameters before it will
stream audio, so the order below is fixed. Nothing here waits for an
acknowledgment: each send is fire-and-forget, and a failed send is logged
by the transport and skipped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from constants import CLIENT_HANDSHAKE_LINE
from protocol.messages import (
    ConnectionProperties,
    DspAction,
    DspControl,
    DspParams,
)

if TYPE_CHECKING:
    from config import ClientConfig
    from transport.connection import Connection


def build_dsp_control(config: ClientConfig) -> DspControl:
    """DSP settings for this client: fixed NFM demodulator, configured squelch/offset."""
    return DspControl(
        params=DspParams(
            squelch_level=config.squelch_level,
            offset_freq=config.frequency_offset,
        )
    )


async def initialize_session(connection: Connection, config: ClientConfig) -> None:
    """
    Send the opening sequence:

    1. identification line
    2. connectionproperties (output sample rates)
    3. dspcontrol (demodulator settings)
    """
    await connection.send_text(CLIENT_HANDSHAKE_LINE)
    await connection.send_message(ConnectionProperties())
    await connection.send_message(build_dsp_control(config))


async def start_audio(connection: Connection) -> None:
    """Ask the server to start streaming. Call after initialize_session()."""
    await connection.send_message(DspAction())
