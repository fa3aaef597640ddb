"""
Connection models.

Classes:
    ConnectionState: Enumeration of connection states
    ConnectionStatus: Snapshot of a connection for display and logging
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ConnectionState(Enum):
    """
    Enumeration of possible connection states.

    States:
        DISCONNECTED: No socket, or the last connect attempt failed
        CONNECTING: Connect in progress
        CONNECTED: Socket open and reader running
        CLOSED: Closed by the client (or faulted and torn down)
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


@dataclass
class ConnectionStatus:
    """
    Current status of a connection.

    Attributes:
        state: Current connection state
        host: Server host
        port: Server port
        connected_at: When the current connection was established
        last_error: Description of the latched fault, if any
    """

    state: ConnectionState
    host: str
    port: int
    connected_at: Optional[datetime] = None
    last_error: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.host}:{self.port} {self.state.value}"
        if self.last_error:
            text += f" ({self.last_error})"
        return text
