"""
Connection state model for the watch socket.
"""

from enum import IntEnum


class ConnectionState(IntEnum):
    """
    State of the persistent watch connection.
    """

    DISCONNECTED = 0
    """No socket has been opened yet."""

    CONNECTING = 1
    """Connect issued, waiting for the socket to become writable."""

    CONNECTED = 2
    """Socket connected; requests can be sent and data read."""

    CLOSED = 3
    """Socket torn down by the client or by the peer."""

    FAILED = 4
    """Connect, send or read failed; establish again to recover."""
