"""
Background socket reader for the wave server connection.

Architecture:
    SocketReader (background thread, one per live connection)
        └── Drains the socket in arrival order
        └── Feeds every chunk to the PendingRequestSlot
        └── Supervises idle time; faults the connection when it is exceeded

    PendingRequestSlot
        └── Holds at most one bound decoder (no pipelining)
        └── Clears itself when the decoder completes
        └── Forwards a connection fault to the bound decoder

The reader thread is the only code that receives from the socket, and the
slot is the only place it hands data to the rest of the client.
"""

import logging
import socket
import threading
import time
from typing import Callable, Dict, Optional

from wwsclient.core.errors import (
    ConnectionLostError,
    IdleTimeoutError,
    ProtocolViolationError,
    WWSError,
    wrap_external_error,
)
from wwsclient.decoders.base import DecodeStatus, ResponseDecoder

logger = logging.getLogger(__name__)


class PendingRequestSlot:
    """
    Single-occupancy association between a connection and the decoder
    responsible for its incoming bytes.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._decoder: Optional[ResponseDecoder] = None

        # Statistics for debugging
        self._stats = {
            'bytes_dispatched': 0,
            'bytes_dropped': 0,
            'requests_bound': 0,
            'requests_faulted': 0,
        }

    def bind(self, decoder: ResponseDecoder) -> None:
        """
        Attach the decoder for the next response.

        Raises:
            ProtocolViolationError: If a decoder is already bound
        """
        with self._lock:
            if self._decoder is not None:
                raise ProtocolViolationError(
                    f"Cannot bind {type(decoder).__name__}: "
                    f"{type(self._decoder).__name__} is still awaiting a response",
                    suggestions=["Use one client instance per thread"]
                )
            self._decoder = decoder
            self._stats['requests_bound'] += 1

    def release(self, decoder: Optional[ResponseDecoder] = None) -> Optional[ResponseDecoder]:
        """
        Empty the slot.

        Args:
            decoder: Only release if this decoder is the bound one; None
                     releases unconditionally

        Returns:
            The decoder that was released, if any
        """
        with self._lock:
            current = self._decoder
            if current is None or (decoder is not None and current is not decoder):
                return None
            self._decoder = None
            return current

    @property
    def decoder(self) -> Optional[ResponseDecoder]:
        with self._lock:
            return self._decoder

    @property
    def is_occupied(self) -> bool:
        with self._lock:
            return self._decoder is not None

    def feed(self, data: bytes) -> Optional[DecodeStatus]:
        """
        Route received bytes to the bound decoder.

        Returns:
            The decoder's status, or None if nothing was bound
        """
        with self._lock:
            decoder = self._decoder

        if decoder is None:
            self._stats['bytes_dropped'] += len(data)
            logger.debug(f"Dropped {len(data)} unsolicited bytes (late response?)")
            return None

        # Decode outside the lock so bind/release never wait on parsing
        status = decoder.consume(data)
        self._stats['bytes_dispatched'] += len(data)
        if status is not DecodeStatus.MORE:
            self.release(decoder)
        return status

    def fault(self, error: Optional[WWSError]) -> None:
        """
        Complete the bound decoder because the stream ended.

        Args:
            error: Why the stream ended; None for an orderly remote close
        """
        decoder = self.release()
        if decoder is None:
            return
        self._stats['requests_faulted'] += 1
        decoder.connection_closed(error)

    def get_stats(self) -> Dict[str, int]:
        """Get slot statistics."""
        return self._stats.copy()


class SocketReader:
    """
    Background thread that continuously reads from the connection socket.

    The socket is polled with a short timeout so the thread can notice stop
    requests and measure idle time without a separate timer thread.
    """

    CHUNK_SIZE = 65536
    POLL_INTERVAL = 0.5

    def __init__(
        self,
        sock: socket.socket,
        slot: PendingRequestSlot,
        idle_timeout: float,
        on_exit: Optional[Callable[["SocketReader", Optional[WWSError]], None]] = None,
        poll_interval: Optional[float] = None
    ):
        """
        Initialize the socket reader.

        Args:
            sock: Connected socket to read from
            slot: Slot receiving the bytes
            idle_timeout: Seconds without traffic before the connection is
                          declared faulted
            on_exit: Called from the reader thread with this reader and the
                     fault (None for an orderly close) once the loop ends.
                     When given, it is responsible for faulting the slot;
                     without it the reader faults the slot itself
            poll_interval: Socket poll timeout in seconds
        """
        self._socket = sock
        self._slot = slot
        self._idle_timeout = idle_timeout
        self._on_exit = on_exit
        self._poll_interval = min(poll_interval or self.POLL_INTERVAL, idle_timeout)
        self._running = False
        self._stopping = False
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._last_activity = time.monotonic()
        self.exit_error: Optional[WWSError] = None

        # Statistics
        self._stats = {
            'chunks_read': 0,
            'bytes_read': 0,
            'socket_errors': 0,
            'idle_timeouts': 0,
        }

    def start(self):
        """Start the background reader thread."""
        with self._lock:
            if self._running:
                logger.warning("SocketReader already running")
                return

            self._running = True
            self._last_activity = time.monotonic()
            self._thread = threading.Thread(
                target=self._read_loop,
                name="WWSSocketReader",
                daemon=True
            )
            self._thread.start()
            logger.debug("SocketReader background thread started")

    def stop(self, timeout: float = 2.0) -> bool:
        """
        Stop the background reader thread.

        Args:
            timeout: Seconds to wait for the thread to exit

        Returns:
            True if the thread has exited
        """
        self.request_stop()
        with self._lock:
            thread = self._thread

        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("SocketReader thread did not stop cleanly")
                return False
        return True

    def request_stop(self) -> None:
        """Ask the loop to exit at its next poll without waiting for it."""
        with self._lock:
            self._stopping = True

    def is_running(self) -> bool:
        """Check if reader is running."""
        return self._running

    def touch(self) -> None:
        """Record traffic (called on send)."""
        self._last_activity = time.monotonic()

    def seconds_idle(self) -> float:
        """Seconds since the last byte was sent or received."""
        return time.monotonic() - self._last_activity

    def _read_loop(self):
        """Main read loop - runs in background thread."""
        error: Optional[WWSError] = None
        self._socket.settimeout(self._poll_interval)

        try:
            while not self._stopping:
                try:
                    data = self._socket.recv(self.CHUNK_SIZE)
                except socket.timeout:
                    idle = self.seconds_idle()
                    if idle > self._idle_timeout:
                        self._stats['idle_timeouts'] += 1
                        error = IdleTimeoutError(
                            f"No data for {idle:.1f}s (idle timeout {self._idle_timeout:g}s)",
                            timeout_seconds=self._idle_timeout
                        )
                        logger.warning(error.message)
                        break
                    continue
                except OSError as e:
                    if not self._stopping:
                        self._stats['socket_errors'] += 1
                        error = ConnectionLostError(f"Socket error in reader: {e}", cause=e)
                        logger.error(error.message)
                    break

                if not data:
                    logger.debug("Server closed the connection")
                    break

                self._last_activity = time.monotonic()
                self._stats['chunks_read'] += 1
                self._stats['bytes_read'] += len(data)
                self._slot.feed(data)

        except Exception as e:
            error = wrap_external_error(
                e, f"Unexpected error in reader: {e}", ConnectionLostError,
                bytes_read=self._stats['bytes_read']
            )
            logger.error(error.message, exc_info=True)

        finally:
            if error is None and self._stopping:
                error = ConnectionLostError("Connection closed by client")
            self.exit_error = error
            if self._on_exit is not None:
                # Owner decides whether this reader may still fault the slot
                self._on_exit(self, error)
            else:
                self._slot.fault(error)
            # Cleared last so is_running() stays True until the decoder is notified
            self._running = False
            logger.debug(f"SocketReader read loop exiting. Stats: {self._stats}")

    def get_stats(self) -> Dict[str, int]:
        """Get reader statistics."""
        return self._stats.copy()
