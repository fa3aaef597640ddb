"""
Error hierarchy for the Winston wave server client.

Every error raised or recorded by the client derives from WWSError, which
carries a numeric code, free-form context and optional suggestions so the
same object can be logged, shown to a user or serialised.

Error Code Ranges:
- 1000-1999: Connection errors
- 2000-2999: Protocol/command errors
- 4000-4999: Decode errors
- 6000-6999: Configuration errors
- 8000-8999: Timeout errors
- 9000-9999: Unknown/System errors
"""

from typing import Optional, Dict, Any, List
from datetime import datetime
import traceback


class WWSError(Exception):
    """
    Base exception for all client errors.

    Provides structured error information with context tracking.
    """

    DEFAULT_CODE = 9000
    CATEGORY = 'SYSTEM'

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        suggestions: Optional[List[str]] = None
    ):
        """
        Initialize a client error.

        Args:
            message: Human-readable error description
            error_code: Numeric error code for categorization
            context: Additional context information (WHERE)
            cause: Original exception if this wraps another error
            suggestions: List of possible solutions or next steps
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.DEFAULT_CODE
        self.context = dict(context or {})
        self.context.setdefault('category', self.CATEGORY)
        self.cause = cause
        self.suggestions = suggestions or []
        self.timestamp = datetime.now()

        self.stack_trace = None
        if cause is not None:
            self.stack_trace = ''.join(
                traceback.format_exception(type(cause), cause, cause.__traceback__)
            )
            self.context['original_error'] = str(cause)
            self.context['original_type'] = type(cause).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'code': self.error_code,
            'context': self.context,
            'suggestions': self.suggestions,
            'timestamp': self.timestamp.isoformat(),
            'cause': str(self.cause) if self.cause else None,
        }

    def format_user_message(self) -> str:
        """Format error for user display (without technical details)."""
        msg = f"{self.message}"
        if self.suggestions:
            msg += "\n\nSuggestions:"
            for i, suggestion in enumerate(self.suggestions, 1):
                msg += f"\n  {i}. {suggestion}"
        return msg

    def format_log_message(self) -> str:
        """Format error for logging (with all details)."""
        parts = [
            f"[{self.error_code}] {self.__class__.__name__}: {self.message}"
        ]

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.cause:
            parts.append(f"Caused by: {self.cause!r}")

        return " | ".join(parts)


class ErrorCodes:
    """Standard error codes."""

    # Connection errors (1000-1999)
    CONNECTION_REFUSED = 1001
    CONNECTION_CANCELLED = 1002
    CONNECTION_LOST = 1003
    WRITE_FAILED = 1004

    # Protocol errors (2000-2999)
    PROTOCOL_VIOLATION = 2001
    INVALID_COMMAND = 2002

    # Decode errors (4000-4999)
    DECODE_FAILED = 4001
    DECOMPRESS_FAILED = 4002
    TRUNCATED_RESPONSE = 4003

    # Configuration errors (6000-6999)
    CONFIG_NOT_FOUND = 6001
    CONFIG_INVALID = 6002

    # Timeout errors (8000-8999)
    CONNECT_TIMEOUT = 8001
    IDLE_TIMEOUT = 8002

    # System errors (9000-9999)
    UNKNOWN_ERROR = 9000


class ConnectError(WWSError):
    """Could not establish a connection to the wave server."""
    DEFAULT_CODE = ErrorCodes.CONNECTION_REFUSED
    CATEGORY = 'CONNECTION'

    def __init__(self, message: str, host: Optional[str] = None,
                 port: Optional[int] = None, **kwargs):
        context = kwargs.setdefault('context', {})
        if host is not None:
            context['host'] = host
        if port is not None:
            context['port'] = port
        super().__init__(message, **kwargs)


class ConnectTimeoutError(ConnectError):
    """Connect did not complete within the connect timeout."""
    DEFAULT_CODE = ErrorCodes.CONNECT_TIMEOUT
    CATEGORY = 'TIMEOUT'


class ConnectCancelledError(ConnectError):
    """Connect attempt was cancelled by a concurrent close."""
    DEFAULT_CODE = ErrorCodes.CONNECTION_CANCELLED


class ConnectRefusedError(ConnectError):
    """Connect was refused or failed with another network error."""
    DEFAULT_CODE = ErrorCodes.CONNECTION_REFUSED


class IdleTimeoutError(WWSError):
    """No bytes moved on an open connection for longer than the idle timeout."""
    DEFAULT_CODE = ErrorCodes.IDLE_TIMEOUT
    CATEGORY = 'TIMEOUT'

    def __init__(self, message: str, timeout_seconds: Optional[float] = None, **kwargs):
        context = kwargs.setdefault('context', {})
        if timeout_seconds is not None:
            context['timeout_seconds'] = timeout_seconds
        super().__init__(message, **kwargs)


class ConnectionLostError(WWSError):
    """Peer closed the connection or a socket error ended the reader."""
    DEFAULT_CODE = ErrorCodes.CONNECTION_LOST
    CATEGORY = 'CONNECTION'


class WriteFailureError(WWSError):
    """Command bytes could not be written to the socket."""
    DEFAULT_CODE = ErrorCodes.WRITE_FAILED
    CATEGORY = 'CONNECTION'


class DecodeError(WWSError):
    """A response could not be decoded."""
    DEFAULT_CODE = ErrorCodes.DECODE_FAILED
    CATEGORY = 'DATA'


class ProtocolViolationError(WWSError):
    """
    A second decoder was bound while a request was already in flight.

    This is a programming error (concurrent use of one client) and is never
    soft-failed.
    """
    DEFAULT_CODE = ErrorCodes.PROTOCOL_VIOLATION
    CATEGORY = 'PROTOCOL'


class ConfigurationError(WWSError):
    """Errors related to client configuration."""
    DEFAULT_CODE = ErrorCodes.CONFIG_INVALID
    CATEGORY = 'CONFIGURATION'

    def __init__(self, message: str, setting_name: Optional[str] = None, **kwargs):
        context = kwargs.setdefault('context', {})
        if setting_name:
            context['setting'] = setting_name
        super().__init__(message, **kwargs)


def wrap_external_error(e: BaseException, message: str, error_class=WWSError, **context) -> WWSError:
    """
    Wrap an external exception in a WWSError.

    Args:
        e: The original exception
        message: Context-specific error message
        error_class: The WWSError subclass to use
        **context: Additional context information

    Returns:
        A WWSError instance wrapping the original exception
    """
    return error_class(
        message=message,
        cause=e,
        context=context
    )
