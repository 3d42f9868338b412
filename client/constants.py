"""
PROTOCOL-AS-CONSTANTS
---------------------
Single source of truth for every wire-level value the receiver client uses.

Rules:
- If changing a value changes what goes over the socket, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Endpoint
# =============================================================================

WS_SCHEME: Final[str] = "ws"
WS_PATH: Final[str] = "/ws/"

DEFAULT_ADDR: Final[str] = "localhost:8073"

# Mirrors the original dialer: one attempt, no keepalive, no compression.
CONNECT_OPEN_TIMEOUT_S: Final[float] = 45.0
WS_MAX_FRAME_BYTES: Final[int] = 2**22

# =============================================================================
# Handshake lines
# =============================================================================

CLIENT_HANDSHAKE_LINE: Final[str] = "SERVER DE CLIENT client=openwebrx.js type=receiver"
SERVER_HANDSHAKE_PREFIX: Final[str] = "CLIENT DE SERVER"

# =============================================================================
# Document types
# =============================================================================

MSG_TYPE_CONNECTION_PROPERTIES: Final[str] = "connectionproperties"
MSG_TYPE_DSP_CONTROL: Final[str] = "dspcontrol"
MSG_TYPE_SMETER: Final[str] = "smeter"

DSP_ACTION_START: Final[str] = "start"

# =============================================================================
# Connection properties (output sample rates, Hz)
# =============================================================================

OUTPUT_RATE_HZ: Final[int] = 11_025
HD_OUTPUT_RATE_HZ: Final[int] = 44_100

# =============================================================================
# Demodulator defaults
# =============================================================================

DEMOD_MODE_NFM: Final[str] = "nfm"
FILTER_LOW_CUT_HZ: Final[int] = -4_000
FILTER_HIGH_CUT_HZ: Final[int] = 4_000
DMR_FILTER: Final[int] = 3
AUDIO_SERVICE_ID: Final[int] = 0
SECONDARY_MOD_DISABLED: Final[bool] = False

DEFAULT_SQUELCH_LEVEL: Final[int] = -120
DEFAULT_FREQUENCY_OFFSET_HZ: Final[int] = 0

# =============================================================================
# Binary frame tags (first byte of every binary frame)
# =============================================================================

TAG_FFT: Final[int] = 1
TAG_AUDIO: Final[int] = 2
TAG_HD_AUDIO: Final[int] = 4

# =============================================================================
# Close handshake
# =============================================================================

CLOSE_CODE_NORMAL: Final[int] = 1000
CLOSE_REASON_EMPTY: Final[str] = ""

# =============================================================================
# Process exit codes
# =============================================================================

EXIT_OK: Final[int] = 0
EXIT_CONNECT_FAILED: Final[int] = 1
