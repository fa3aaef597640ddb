"""
Decoder that copies a raw response to a text stream.

Used for free-form commands whose response layout the client does not know.
There is no framing to tell when such a response ends, so the decoder only
finishes when the server closes the connection or goes idle; either outcome
counts as success.
"""

import sys
from typing import Optional, TextIO

from wwsclient.core.errors import IdleTimeoutError, WWSError

from .base import DecodeStatus, ResponseDecoder


class StdoutDecoder(ResponseDecoder[int]):
    """Writes every received chunk to a stream; result is the byte count."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        super().__init__(compressed=False)

    def default_result(self) -> int:
        return 0

    def _consume(self, data: bytes) -> DecodeStatus:
        self.stream.write(data.decode("ascii", errors="replace"))
        self.stream.flush()
        return DecodeStatus.MORE

    def connection_closed(self, error: Optional[WWSError] = None) -> None:
        if error is None or isinstance(error, IdleTimeoutError):
            self._finish(self.bytes_received)
        else:
            super().connection_closed(error)
