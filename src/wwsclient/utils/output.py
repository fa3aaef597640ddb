"""
Plain-text renderers for client results.

Used by the command-line interface to print server menus, waveform samples,
helicorder rows and RSAM values.
"""
import sys
from typing import Iterable, Optional, TextIO

from wwsclient.models.channel import Channel
from wwsclient.models.data import HelicorderData, RSAMData, Wave


def format_menu(channels: Iterable[Channel]) -> str:
    """Render a channel list as 'Channel count: n' followed by one line per channel.

    Example:
        >>> print(format_menu(client.get_channels()))
        Channel count: 2
        1:RCM$EHZ$AV$--:...
    """
    channels = list(channels)
    lines = [f"Channel count: {len(channels)}"]
    lines.extend(channel.to_metadata_string() for channel in channels)
    return "\n".join(lines)


def write_menu(channels: Iterable[Channel], stream: Optional[TextIO] = None) -> None:
    _write(format_menu(channels), stream)


def write_wave(wave: Wave, stream: Optional[TextIO] = None) -> int:
    """Write one sample per line.

    Returns:
        Number of samples written
    """
    stream = stream or sys.stdout
    if wave.is_empty:
        stream.write("No data received\n")
        return 0
    _write(wave.to_text(), stream)
    return wave.num_samples


def write_helicorder(heli: HelicorderData, stream: Optional[TextIO] = None) -> int:
    """Write helicorder rows as CSV; returns the row count."""
    _write(heli.to_csv(), stream)
    return heli.rows


def write_rsam(rsam: RSAMData, stream: Optional[TextIO] = None) -> int:
    """Write RSAM rows as CSV; returns the row count."""
    _write(rsam.to_csv(), stream)
    return rsam.rows


def _write(text: str, stream: Optional[TextIO]) -> None:
    stream = stream or sys.stdout
    stream.write(text)
    stream.write("\n")
    stream.flush()
