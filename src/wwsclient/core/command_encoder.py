"""
Command encoder for the Winston wave server protocol.

Commands are single ASCII lines terminated by exactly one line feed. Some
responses are themselves newline delimited, so the framing must never carry
a stray CR or a second LF.

COMMANDS:
=========
    VERSION\\n
    GETWAVERAW: GS <STA> <CHN> <NET> <LOC> <start> <end> <0|1>\\n
    GETSCNLHELIRAW: GS <STA> <CHN> <NET> <LOC> <start> <end> <0|1>\\n
    GETSCNLRSAMRAW: GS <STA> <CHN> <NET> <LOC> <start> <end> <period> <0|1>\\n
    GETCHANNELS: GC[ METADATA]\\n

<start>/<end> are J2kSec rendered with six fixed decimals. Python's format
mini-language is locale independent, so the decimal separator is always '.'.
The trailing flag asks the server to zlib-compress the response body.

Usage Example:
    >>> encoder = CommandEncoder()
    >>> encoder.encode_wave(Scnl("RCM", "EHZ", "AV"), TimeSpan.from_j2k(0, 60), True)
    'GETWAVERAW: GS RCM EHZ AV -- 0.000000 60.000000 1\\n'
"""

from typing import Union

from wwsclient.core.errors import WWSError, ErrorCodes
from wwsclient.models.scnl import Scnl, TimeSpan


class CommandEncoder:
    """
    Builds wire commands for each wave server operation.

    Stateless; one instance may be shared freely.
    """

    TERMINATOR = "\n"

    VERSION = "VERSION"
    GET_WAVE_RAW = "GETWAVERAW"
    GET_HELI_RAW = "GETSCNLHELIRAW"
    GET_RSAM_RAW = "GETSCNLRSAMRAW"
    GET_CHANNELS = "GETCHANNELS"

    # Sub-command letter pairs
    SCNL_SUBCOMMAND = "GS"
    CHANNELS_SUBCOMMAND = "GC"

    @staticmethod
    def format_flag(flag: bool) -> str:
        """Render a boolean as the protocol's '1'/'0'."""
        return "1" if flag else "0"

    @staticmethod
    def format_time(j2k: float) -> str:
        """Render J2kSec as fixed-point text."""
        return f"{float(j2k):f}"

    def encode_version(self) -> str:
        return f"{self.VERSION}{self.TERMINATOR}"

    def encode_wave(self, scnl: Scnl, time_span: TimeSpan, compress: bool) -> str:
        """
        Encode a raw waveform request.

        Args:
            scnl: Channel to request
            time_span: Span to request
            compress: Ask the server to compress the response body

        Returns:
            Command line including the trailing line feed
        """
        return self._encode_scnl_request(self.GET_WAVE_RAW, scnl, time_span, compress)

    def encode_helicorder(self, scnl: Scnl, time_span: TimeSpan, compress: bool) -> str:
        """Encode a helicorder (min/max) request."""
        return self._encode_scnl_request(self.GET_HELI_RAW, scnl, time_span, compress)

    def encode_rsam(self, scnl: Scnl, time_span: TimeSpan, period: int, compress: bool) -> str:
        """
        Encode an RSAM request.

        Args:
            scnl: Channel to request
            time_span: Span to request
            period: RSAM averaging period in seconds
            compress: Ask the server to compress the response body

        Raises:
            WWSError: If period is not a positive integer
        """
        if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
            raise WWSError(
                f"RSAM period must be a positive integer, got {period!r}",
                error_code=ErrorCodes.INVALID_COMMAND
            )
        return self._encode_scnl_request(
            self.GET_RSAM_RAW, scnl, time_span, compress, extra=str(period)
        )

    def encode_channels(self, metadata: bool = False) -> str:
        """Encode a channel list request, optionally with metadata."""
        suffix = " METADATA" if metadata else ""
        return f"{self.GET_CHANNELS}: {self.CHANNELS_SUBCOMMAND}{suffix}{self.TERMINATOR}"

    def encode_raw(self, command: str) -> str:
        """
        Normalise a free-form command to a single terminated line.

        Raises:
            WWSError: If the command is empty or spans several lines
        """
        text = command.rstrip("\r\n")
        if not text.strip() or "\n" in text or "\r" in text:
            raise WWSError(
                f"Invalid raw command: {command!r}",
                error_code=ErrorCodes.INVALID_COMMAND
            )
        return f"{text}{self.TERMINATOR}"

    def _encode_scnl_request(
        self,
        keyword: str,
        scnl: Scnl,
        time_span: TimeSpan,
        compress: bool,
        extra: Union[str, None] = None
    ) -> str:
        fields = [
            f"{keyword}:",
            self.SCNL_SUBCOMMAND,
            scnl.to_string(" "),
            self.format_time(time_span.start_j2k),
            self.format_time(time_span.end_j2k),
        ]
        if extra is not None:
            fields.append(extra)
        fields.append(self.format_flag(compress))
        return " ".join(fields) + self.TERMINATOR


def to_wire(command: str) -> bytes:
    """ASCII bytes of a command; non-ASCII text is a caller error."""
    try:
        return command.encode("ascii")
    except UnicodeEncodeError as e:
        raise WWSError(
            f"Command is not ASCII: {command!r}",
            error_code=ErrorCodes.INVALID_COMMAND,
            cause=e
        ) from e
