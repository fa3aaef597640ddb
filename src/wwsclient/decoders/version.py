"""
Decoder for the VERSION response.

The server answers with one line, ``PROTOCOL_VERSION: <n>``.
"""

from wwsclient.core.errors import DecodeError

from .base import DecodeStatus, LineBuffer, ResponseDecoder


class VersionDecoder(ResponseDecoder[int]):
    """Decodes the protocol version; 0 when unavailable."""

    PREFIX = "PROTOCOL_VERSION"

    def __init__(self):
        self._lines = LineBuffer()
        super().__init__(compressed=False)

    def default_result(self) -> int:
        return 0

    def _consume(self, data: bytes) -> DecodeStatus:
        self._lines.feed(data)
        line = self._lines.next_line()
        if line is None:
            return DecodeStatus.MORE

        key, sep, value = line.partition(":")
        if not sep or key.strip() != self.PREFIX:
            raise DecodeError(f"Unexpected VERSION response: {line!r}")
        try:
            version = int(value.strip())
        except ValueError as e:
            raise DecodeError(f"Invalid protocol version: {value.strip()!r}", cause=e) from e
        return self._finish(version)
