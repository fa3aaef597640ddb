"""Domain models for the wave server client."""

from .scnl import Scnl, TimeSpan, NO_LOCATION
from .data import Wave, HelicorderData, RSAMData, NO_DATA
from .channel import Channel
from .connection import ConnectionState, ConnectionStatus

__all__ = [
    'Scnl',
    'TimeSpan',
    'NO_LOCATION',
    'Wave',
    'HelicorderData',
    'RSAMData',
    'NO_DATA',
    'Channel',
    'ConnectionState',
    'ConnectionStatus',
]
