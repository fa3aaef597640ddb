"""
Core layer for wave server communication.

This package contains the protocol encoder, the connection with its
background reader, and the request dispatcher. Only the dependency-free
pieces are re-exported here; import TCPConnection and RequestDispatcher from
their modules.
"""

from .errors import (
    WWSError,
    ErrorCodes,
    ConnectError,
    ConnectTimeoutError,
    ConnectCancelledError,
    ConnectRefusedError,
    IdleTimeoutError,
    ConnectionLostError,
    WriteFailureError,
    DecodeError,
    ProtocolViolationError,
    ConfigurationError,
)
from .events import ClientEvent, EventEmitter
from .command_encoder import CommandEncoder, to_wire

__all__ = [
    'WWSError',
    'ErrorCodes',
    'ConnectError',
    'ConnectTimeoutError',
    'ConnectCancelledError',
    'ConnectRefusedError',
    'IdleTimeoutError',
    'ConnectionLostError',
    'WriteFailureError',
    'DecodeError',
    'ProtocolViolationError',
    'ConfigurationError',
    'ClientEvent',
    'EventEmitter',
    'CommandEncoder',
    'to_wire',
]
