"""
Response decoder contract.

A decoder consumes the bytes of exactly one response. The socket reader feeds
it chunks in arrival order; the decoder answers MORE, DONE or FAILED. If the
stream ends first, the reader calls connection_closed() instead.

Each decoder owns:
    - its result holder, initialised to the operation's "no data" value and
      replaced only when decoding succeeds
    - a completion signal (threading.Event) that is set exactly once, by the
      first of: decoder done, decoder failed, connection fault, idle timeout

The request dispatcher blocks on that signal; it is the only synchronisation
point between the reader thread and the caller.
"""

import logging
import threading
import zlib
from abc import ABC, abstractmethod
from enum import Enum
from typing import Generic, Optional, TypeVar

from wwsclient.core.errors import DecodeError, ErrorCodes, WWSError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DecodeStatus(Enum):
    """Outcome of feeding one chunk to a decoder."""
    MORE = "more"
    DONE = "done"
    FAILED = "failed"


class ResponseDecoder(ABC, Generic[T]):
    """
    Base class for all response decoders.

    Subclasses implement default_result() and _consume(); they call
    _finish(result) on success and raise DecodeError on malformed input.
    """

    def __init__(self, compressed: bool = False):
        """
        Args:
            compressed: Response body is zlib compressed
        """
        self.compressed = compressed
        self.result: T = self.default_result()
        self.error: Optional[WWSError] = None
        self.bytes_received = 0
        self._status = DecodeStatus.MORE
        self._complete = threading.Event()
        self._lock = threading.Lock()

    @abstractmethod
    def default_result(self) -> T:
        """The empty value returned when no data could be decoded."""

    @abstractmethod
    def _consume(self, data: bytes) -> DecodeStatus:
        """Parse a chunk; return MORE until the response is complete."""

    # ---- called from the reader thread ----

    def consume(self, data: bytes) -> DecodeStatus:
        """
        Feed a chunk of response bytes.

        Decode errors are captured here and turned into a FAILED outcome so
        the reader thread never sees them.
        """
        if self.is_complete:
            return self._status

        self.bytes_received += len(data)
        try:
            status = self._consume(data)
        except DecodeError as e:
            self.fail(e)
            return DecodeStatus.FAILED
        except (ValueError, IndexError, zlib.error) as e:
            self.fail(DecodeError(f"{type(self).__name__} could not decode response: {e}",
                                  cause=e))
            return DecodeStatus.FAILED

        if status is DecodeStatus.FAILED and not self.is_complete:
            self.fail(DecodeError(f"{type(self).__name__} rejected the response"))
        return self._status if self.is_complete else status

    def connection_closed(self, error: Optional[WWSError] = None) -> None:
        """
        The stream ended before the decoder finished.

        Default: discard partial data and complete with the error (or a
        truncation error when the peer simply closed). Subclasses that can use
        partial data override this.
        """
        if self.is_complete:
            return
        if error is None:
            error = DecodeError(
                f"Connection closed after {self.bytes_received} bytes before response was complete",
                error_code=ErrorCodes.TRUNCATED_RESPONSE
            )
        self.fail(error)

    # ---- completion ----

    def _finish(self, result: T) -> DecodeStatus:
        """Store the result and raise the completion signal."""
        with self._lock:
            if self._complete.is_set():
                return self._status
            self.result = result
            self._status = DecodeStatus.DONE
            self._complete.set()
        return DecodeStatus.DONE

    def fail(self, error: WWSError) -> bool:
        """
        Complete with an error; the result keeps its default value.

        Returns:
            True if this call completed the decoder, False if it was already
            complete
        """
        with self._lock:
            if self._complete.is_set():
                return False
            self.error = error
            self.result = self.default_result()
            self._status = DecodeStatus.FAILED
            self._complete.set()
        logger.debug(f"{type(self).__name__} failed: {error.message}")
        return True

    @property
    def is_complete(self) -> bool:
        return self._complete.is_set()

    @property
    def succeeded(self) -> bool:
        return self._status is DecodeStatus.DONE

    @property
    def status(self) -> DecodeStatus:
        return self._status

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the completion signal is raised.

        Returns:
            True if complete, False if timeout elapsed first
        """
        return self._complete.wait(timeout)

    # ---- helpers for subclasses ----

    def decompress(self, body: bytes) -> bytes:
        """Inflate a body when the request asked for compression."""
        if not self.compressed:
            return body
        try:
            return zlib.decompress(body)
        except zlib.error as e:
            raise DecodeError(
                f"Could not decompress {len(body)} byte response body: {e}",
                error_code=ErrorCodes.DECOMPRESS_FAILED,
                cause=e
            ) from e

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(compressed={self.compressed}, "
                f"status={self._status.value}, bytes={self.bytes_received})")


class LineBuffer:
    """Accumulates bytes and hands out complete LF-terminated lines."""

    def __init__(self):
        self._buffer = bytearray()

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def next_line(self) -> Optional[str]:
        """Pop the next complete line without its terminator, or None."""
        index = self._buffer.find(b"\n")
        if index < 0:
            return None
        line = bytes(self._buffer[:index])
        del self._buffer[:index + 1]
        return line.rstrip(b"\r").decode("ascii", errors="replace")

    def take(self, size: int) -> Optional[bytes]:
        """Pop exactly size bytes, or None if fewer are buffered."""
        if len(self._buffer) < size:
            return None
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def drain(self) -> bytes:
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def __len__(self) -> int:
        return len(self._buffer)


__all__ = ['DecodeStatus', 'ResponseDecoder', 'LineBuffer']
