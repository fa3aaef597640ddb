"""
Request dispatcher: the blocking call surface over the background reader.

dispatch() runs one request from start to finish on the caller's thread:

    1. ensure_connected()           - on failure the result stays at its default
    2. slot.bind(decoder)           - ProtocolViolationError if occupied
    3. send(command)                - write failure is treated like connect failure
    4. wait on decoder completion   - set by decoder done/failed, fault or idle timeout
    5. release slot, close connection (always)

Network failures never escape; the caller sees the decoder's default result.
"""

import logging
from typing import Optional

from wwsclient.core.command_encoder import to_wire
from wwsclient.core.errors import (
    ConnectionLostError,
    IdleTimeoutError,
    WriteFailureError,
)
from wwsclient.core.events import EventEmitter
from wwsclient.core.tcp_connection import TCPConnection
from wwsclient.decoders.base import ResponseDecoder

logger = logging.getLogger(__name__)


class RequestDispatcher:
    """
    Sends one command at a time over a TCPConnection and blocks until its
    decoder completes.

    Example:
        >>> dispatcher = RequestDispatcher(TCPConnection("localhost", 16022))
        >>> decoder = VersionDecoder()
        >>> dispatcher.dispatch("VERSION\\n", decoder)
        >>> decoder.result
        4
    """

    # Longest single wait on the completion signal before re-checking the
    # connection; keeps a lost completion from blocking forever
    MAX_WAIT_SLICE = 1.0

    def __init__(self, connection: TCPConnection, events: Optional[EventEmitter] = None):
        """
        Args:
            connection: Connection to borrow for each request
            events: Event emitter (default: the connection's)
        """
        self._connection = connection
        self._events = events or connection.events

    @property
    def connection(self) -> TCPConnection:
        return self._connection

    def dispatch(self, command: str, decoder: ResponseDecoder) -> None:
        """
        Send a request and block until the response has been processed.

        The outcome is left in the decoder (result, error).

        Args:
            command: LF-terminated command line
            decoder: Decoder for the expected response

        Raises:
            ProtocolViolationError: If another request is already in flight
            WWSError: If the command is not ASCII
        """
        payload = to_wire(command)
        request = command.rstrip("\n")

        try:
            if not self._connection.ensure_connected():
                logger.debug(f"Not sending {request!r}: no connection")
                self._events.emit('request_failed', command=request, reason='connect')
                return

            self._connection.slot.bind(decoder)

            try:
                logger.debug(f"Sending: {request}")
                self._connection.send(payload)
            except WriteFailureError as e:
                decoder.fail(e)
                logger.error(f"Could not send request {request!r}: {e.message}")
                self._events.emit('request_failed', command=request, reason='write')
                return

            logger.debug(f"Sent: {request}")
            self._events.emit('request_sent', command=request)

            self._await_completion(decoder)

            if decoder.succeeded:
                logger.debug(f"Completed: {request}")
                self._events.emit(
                    'request_completed',
                    command=request,
                    bytes=decoder.bytes_received
                )
            else:
                reason = type(decoder.error).__name__ if decoder.error else 'unknown'
                logger.warning(
                    f"Request {request!r} failed: "
                    f"{decoder.error.message if decoder.error else 'no response'}"
                )
                self._events.emit('request_failed', command=request, reason=reason)

        finally:
            self._connection.slot.release(decoder)
            self._connection.close()

    def _await_completion(self, decoder: ResponseDecoder) -> None:
        """
        Wait for the decoder's completion signal.

        The reader normally raises it. If the reader has died without doing so
        or traffic stopped beyond the idle timeout, the decoder is failed here
        so the wait always ends.
        """
        idle_timeout = self._connection.idle_timeout
        wait_slice = min(self.MAX_WAIT_SLICE, idle_timeout)

        while not decoder.wait(wait_slice):
            if not self._connection.is_alive():
                decoder.fail(self._connection.fault or ConnectionLostError(
                    "Connection ended before the response was complete"
                ))
            elif self._connection.seconds_idle() > idle_timeout + wait_slice:
                decoder.fail(IdleTimeoutError(
                    f"No response within idle timeout {idle_timeout:g}s",
                    timeout_seconds=idle_timeout
                ))
