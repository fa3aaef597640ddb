"""
TCP connection management for wave server communication.

This module owns the socket and its background reader: connect with a bounded
timeout, reuse a healthy connection, supervise idle time, and close cleanly.
It never raises for network failures; connect problems are classified,
logged, emitted as events and reported as False.

States:
    DISCONNECTED -> CONNECTING -> CONNECTED -> CLOSED
"""

import logging
import socket
import threading
from datetime import datetime
from typing import Optional

from wwsclient.core.errors import (
    ConnectCancelledError,
    ConnectError,
    ConnectRefusedError,
    ConnectTimeoutError,
    ConnectionLostError,
    WriteFailureError,
    WWSError,
)
from wwsclient.core.events import EventEmitter
from wwsclient.core.socket_reader import PendingRequestSlot, SocketReader
from wwsclient.models.connection import ConnectionState, ConnectionStatus

# Seconds without traffic before an open connection is declared faulted
DEFAULT_IDLE_TIMEOUT = 30.0

# Seconds close() waits for the reader to confirm the socket is done
DEFAULT_CLOSE_GRACE = 2.0


class TCPConnection:
    """
    Manages the single TCP connection of one client.

    The connection carries a PendingRequestSlot; the request dispatcher binds
    a decoder to it and the background SocketReader feeds it.

    Example:
        >>> connection = TCPConnection("pubavo1.wr.usgs.gov", 16022)
        >>> if connection.ensure_connected():
        ...     connection.send(b"VERSION\\n")
        >>> connection.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        connect_timeout: Optional[float] = None,
        close_grace: float = DEFAULT_CLOSE_GRACE,
        events: Optional[EventEmitter] = None
    ):
        """
        Initialize the connection manager. No I/O happens until
        ensure_connected().

        Args:
            host: Server host name or address
            port: Server port
            idle_timeout: Seconds without traffic before faulting
            connect_timeout: Seconds allowed for connect (default: idle_timeout)
            close_grace: Seconds close() waits for the reader to exit
            events: Event emitter shared with the owning client

        Raises:
            ValueError: If host, port or timeouts are invalid
        """
        self._validate_host(host)
        self._validate_port(port)
        if idle_timeout <= 0:
            raise ValueError(f"Idle timeout must be positive, got {idle_timeout}")

        self.host = host
        self.port = port
        self.idle_timeout = float(idle_timeout)
        self.connect_timeout = float(connect_timeout or idle_timeout)
        self.close_grace = close_grace
        self.events = events or EventEmitter()
        self.logger = logging.getLogger(__name__)

        self.slot = PendingRequestSlot()

        self._lock = threading.Lock()
        self._state = ConnectionState.DISCONNECTED
        self._socket: Optional[socket.socket] = None
        self._reader: Optional[SocketReader] = None
        self._fault: Optional[WWSError] = None
        self._peer_closed = False
        self._cancelled = False
        self._connected_at: Optional[datetime] = None

    # ========== Lifecycle ==========

    def ensure_connected(self) -> bool:
        """
        Make sure a healthy connection exists.

        Reuses the current connection when it is connected, its reader is
        alive and no fault is latched. Otherwise tears it down and connects
        again within connect_timeout.

        Returns:
            True if connected, False if the connect failed, timed out or was
            cancelled (state is then DISCONNECTED)
        """
        with self._lock:
            reuse = self._state is ConnectionState.CONNECTED and self._is_healthy_unsafe()
            if not reuse and self._socket is not None:
                self.logger.debug("Discarding stale connection")
                self._teardown_unsafe()

            if not reuse:
                self._state = ConnectionState.CONNECTING
                self._cancelled = False
                self._fault = None
                self._peer_closed = False

        if reuse:
            self.logger.debug("Reusing connection")
            self.events.emit('connection_reused', host=self.host, port=self.port)
            return True

        self.logger.debug(f"Connecting to {self.host}:{self.port}")
        sock = None
        try:
            address = self._resolve()
            sock = socket.socket(address[0], socket.SOCK_STREAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            with self._lock:
                if self._cancelled:
                    raise OSError("connect cancelled")
                self._socket = sock
            sock.settimeout(self.connect_timeout)
            sock.connect(address[1])
        except OSError as e:
            if self._cancelled:
                error: ConnectError = ConnectCancelledError(
                    f"Connection attempt to {self.host}:{self.port} cancelled",
                    host=self.host, port=self.port, cause=e
                )
            elif isinstance(e, socket.timeout):
                error = ConnectTimeoutError(
                    f"Timeout connecting to {self.host}:{self.port}",
                    host=self.host, port=self.port, cause=e
                )
            else:
                error = ConnectRefusedError(
                    f"Error connecting to {self.host}:{self.port} ({type(e).__name__}: {e})",
                    host=self.host, port=self.port, cause=e
                )
            return self._connect_failed(sock, error)

        with self._lock:
            if self._cancelled:
                self._teardown_unsafe()
                self._state = ConnectionState.DISCONNECTED
                cancelled = True
            else:
                cancelled = False
                self._reader = SocketReader(
                    sock, self.slot, self.idle_timeout, on_exit=self._on_reader_exit
                )
                self._reader.start()
                self._state = ConnectionState.CONNECTED
                self._connected_at = datetime.now()

        if cancelled:
            return self._connect_failed(None, ConnectCancelledError(
                f"Connection attempt to {self.host}:{self.port} cancelled",
                host=self.host, port=self.port
            ))

        self.logger.info(f"Connected to {self.host}:{self.port}")
        self.events.emit('connected', host=self.host, port=self.port)
        return True

    def _connect_failed(self, sock: Optional[socket.socket], error: ConnectError) -> bool:
        with self._lock:
            if self._socket is sock:
                self._socket = None
            self._state = ConnectionState.DISCONNECTED
        if sock is not None:
            try:
                sock.close()
            except OSError:
                pass

        self.logger.error(error.message)
        self.events.emit(
            'connect_failed',
            host=self.host,
            port=self.port,
            reason=type(error).__name__,
            error=str(error.cause) if error.cause else error.message
        )
        return False

    def close(self, grace: Optional[float] = None) -> None:
        """
        Close the connection and release its reader.

        Performs an orderly shutdown when connected and waits up to the grace
        period for the reader to confirm. Resources are released even if the
        shutdown fails. Safe to call repeatedly; while a connect is in
        progress it cancels that connect.

        Args:
            grace: Seconds to wait for the reader (default: close_grace)
        """
        grace = self.close_grace if grace is None else grace

        with self._lock:
            if self._state is ConnectionState.CONNECTING:
                self._cancelled = True
                sock = self._socket
                if sock is not None:
                    self._close_socket(sock)
                self.logger.debug("Cancelled connect in progress")
                return

            sock, reader = self._socket, self._reader
            was_open = sock is not None
            self._socket = None
            self._reader = None
            if was_open or self._state is ConnectionState.CONNECTED:
                self._state = ConnectionState.CLOSED
            if reader is not None:
                # The detached reader no longer reports to the slot
                self.slot.fault(ConnectionLostError("Connection closed by client"))

        if not was_open:
            return

        self.logger.debug("Closing connection")
        if reader is not None:
            reader.request_stop()
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            self.logger.debug(f"Shutdown failed: {e}")

        if reader is not None:
            reader.stop(timeout=grace)

        self._close_socket(sock)
        self.logger.debug(f"Closed connection to {self.host}:{self.port}")
        self.events.emit('connection_closed', host=self.host, port=self.port)

    def _teardown_unsafe(self) -> None:
        """
        Drop socket and reader without waiting (called with the lock held).
        """
        reader, sock = self._reader, self._socket
        self._reader = None
        self._socket = None
        if reader is not None:
            # The reader exits on its own once the socket is closed
            reader.request_stop()
            self.slot.fault(ConnectionLostError("Stale connection discarded"))
        if sock is not None:
            self._close_socket(sock)

    def _close_socket(self, sock: socket.socket) -> None:
        try:
            sock.close()
        except OSError as e:
            self.logger.error(f"Error closing socket: {e}")

    def _on_reader_exit(self, reader: SocketReader, error: Optional[WWSError]) -> None:
        """
        Reader thread finished; latch the fault so the connection is not
        reused and complete the pending request.

        Only the current reader may touch the slot. A reader detached by
        close() or a reconnect may exit after the next request was bound.
        """
        with self._lock:
            if reader is not self._reader:
                return
            self._peer_closed = True
            if error is not None and self._fault is None:
                self._fault = error
            self.slot.fault(error)
        if error is not None:
            self.events.emit(
                'connection_fault',
                host=self.host,
                port=self.port,
                reason=type(error).__name__,
                error=error.message
            )

    # ========== I/O ==========

    def send(self, data: bytes) -> None:
        """
        Write bytes and return once the transport has accepted all of them.

        Raises:
            WriteFailureError: If not connected or the write fails
        """
        with self._lock:
            sock, reader = self._socket, self._reader
            if self._state is not ConnectionState.CONNECTED or sock is None:
                raise WriteFailureError(f"Not connected to {self.host}:{self.port}")
            if self._fault is not None:
                raise WriteFailureError(
                    f"Connection to {self.host}:{self.port} is faulted: {self._fault.message}",
                    cause=self._fault
                )
            if self._peer_closed or reader is None or not reader.is_running():
                raise WriteFailureError(f"Server {self.host}:{self.port} closed the connection")

        try:
            sock.sendall(data)
        except OSError as e:
            with self._lock:
                if self._fault is None:
                    self._fault = ConnectionLostError(f"Write failed: {e}", cause=e)
            self.logger.error(f"Failed to send {len(data)} bytes: {e}")
            raise WriteFailureError(
                f"Failed to send request to {self.host}:{self.port}", cause=e
            ) from e

        if reader is not None:
            reader.touch()
        self.logger.debug(f"Sent {len(data)} bytes")

    # ========== State ==========

    def _is_healthy_unsafe(self) -> bool:
        return (self._socket is not None
                and self._reader is not None
                and self._reader.is_running()
                and not self._peer_closed
                and self._fault is None)

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    def is_connected(self) -> bool:
        """True if connected and healthy."""
        with self._lock:
            return self._state is ConnectionState.CONNECTED and self._is_healthy_unsafe()

    def is_alive(self) -> bool:
        """True while the reader is still delivering data."""
        with self._lock:
            return self._reader is not None and self._reader.is_running()

    @property
    def fault(self) -> Optional[WWSError]:
        with self._lock:
            return self._fault

    def seconds_idle(self) -> float:
        """Seconds since the last traffic, 0 when not connected."""
        with self._lock:
            reader = self._reader
        return reader.seconds_idle() if reader is not None else 0.0

    def get_status(self) -> ConnectionStatus:
        with self._lock:
            return ConnectionStatus(
                state=self._state,
                host=self.host,
                port=self.port,
                connected_at=self._connected_at,
                last_error=self._fault.message if self._fault else None
            )

    def _resolve(self):
        """First (family, sockaddr) for the server, IPv4 preferred."""
        infos = socket.getaddrinfo(self.host, self.port, 0, socket.SOCK_STREAM)
        infos.sort(key=lambda info: info[0] != socket.AF_INET)
        family, _, _, _, sockaddr = infos[0]
        return family, sockaddr

    @staticmethod
    def _validate_host(host: str) -> None:
        if not isinstance(host, str) or not host.strip():
            raise ValueError(f"Invalid server address: {host!r}")

    @staticmethod
    def _validate_port(port: int) -> None:
        if isinstance(port, bool) or not isinstance(port, int):
            raise ValueError(f"Port must be an integer, got {type(port)}")
        if port < 1 or port > 65535:
            raise ValueError(f"Port must be 1-65535, got {port}")
