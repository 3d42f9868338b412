"""
Connection status tracking for the receiver session.

Connection lifecycle is tracked separately from the shutdown state machine.
connection_status: DOWN | CONNECTING | UP | CLOSING

This is pure data owned by ReceiverSession.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """
    Connection lifecycle status.

    There is no path back to UP once the status leaves it:
    closure is terminal and nothing reconnects.
    """
    DOWN = "DOWN"              # Not connected (before connect, or closed)
    CONNECTING = "CONNECTING"  # Single connect attempt in progress
    UP = "UP"                  # Active WebSocket connection
    CLOSING = "CLOSING"        # Close frame sent, waiting for the server
