"""
Command-Line Interface - Argument Parsing and Entry Point

Command-line front end for querying a Winston wave server. It handles:
- Command-line argument parsing
- Argument validation
- Loading server settings from a YAML config
- Running each requested action against the server

Usage:
    python -m wwsclient --server pubavo1.wr.usgs.gov --menu
    python -m wwsclient --server localhost --channel 'RCM$EHZ$AV' \\
        --time 202401010000,202401010010 --txt
    python -m wwsclient --help
"""

import sys
import argparse
import logging
from typing import List, Optional

from wwsclient.client import WWSClient
from wwsclient.config import DEFAULT_PORT, ClientConfig
from wwsclient.core.errors import ConfigurationError, WWSError
from wwsclient.models.scnl import Scnl, TimeSpan
from wwsclient.utils.output import write_helicorder, write_menu, write_rsam, write_wave
from wwsclient.utils.time_utils import parse_time

# Default RSAM period in seconds when --rsam is given without a value
DEFAULT_RSAM_PERIOD = 60


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: List of arguments to parse. If None, uses sys.argv[1:]

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="wwsclient",
        description="Winston Wave Server client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --server pubavo1.wr.usgs.gov --menu
  %(prog)s --server localhost --channel 'RCM$EHZ$AV' --time 202401010000,202401010010 --txt
  %(prog)s --config wws.yaml --channel 'RCM$EHZ$AV$--' --time 2024-01-01T00:00,2024-01-01T01:00 --rsam 600
  %(prog)s --server localhost --command VERSION

Times are UTC, as YYYYMMDDHHMM[SS] or ISO-8601.
        """
    )

    # Connection arguments
    parser.add_argument(
        "--server",
        type=str,
        default=None,
        help="Wave server host name or address"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Wave server port (default: {DEFAULT_PORT})"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML file with server settings; --server/--port override it"
    )

    parser.add_argument(
        "--idle-timeout",
        type=float,
        default=None,
        help="Seconds without traffic before a request is abandoned (default: 30)"
    )

    # Request arguments
    parser.add_argument(
        "--channel",
        type=str,
        default=None,
        help="Channel as STA$CHN$NET[$LOC]"
    )

    parser.add_argument(
        "--time",
        type=str,
        default=None,
        help="Time span as START,END"
    )

    parser.add_argument(
        "--no-compress",
        action="store_true",
        help="Do not ask the server to compress responses"
    )

    # Actions
    parser.add_argument(
        "--menu",
        action="store_true",
        help="Print the server's channel list"
    )

    parser.add_argument(
        "--metadata",
        action="store_true",
        help="Include channel metadata in the --menu listing"
    )

    parser.add_argument(
        "--txt",
        action="store_true",
        help="Print waveform samples, one per line"
    )

    parser.add_argument(
        "--heli",
        action="store_true",
        help="Print helicorder data as CSV"
    )

    parser.add_argument(
        "--rsam",
        type=int,
        nargs="?",
        const=DEFAULT_RSAM_PERIOD,
        default=None,
        metavar="PERIOD",
        help=f"Print RSAM data as CSV (period in seconds, default: {DEFAULT_RSAM_PERIOD})"
    )

    parser.add_argument(
        "--command",
        type=str,
        default=None,
        help="Send a raw command and print the response"
    )

    # Logging level
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)"
    )

    return parser.parse_args(args)


def validate_args(args: argparse.Namespace) -> bool:
    """Validate parsed command-line arguments.

    Args:
        args: Parsed arguments from parse_args()

    Returns:
        True if arguments are valid, False otherwise

    This function validates:
    - A server is given directly or through --config
    - Port number is in valid range (1-65535) if provided
    - Channel and time span are present and parseable when a data action is requested
    - At least one action is requested
    """
    if not args.server and not args.config:
        print("Error: A server is required (--server or --config)")
        return False

    if args.port is not None and not (1 <= args.port <= 65535):
        print(f"Error: Port must be between 1 and 65535, got {args.port}")
        return False

    if args.idle_timeout is not None and args.idle_timeout <= 0:
        print(f"Error: Idle timeout must be positive, got {args.idle_timeout}")
        return False

    if args.rsam is not None and args.rsam <= 0:
        print(f"Error: RSAM period must be positive, got {args.rsam}")
        return False

    wants_data = args.txt or args.heli or args.rsam is not None
    if not (wants_data or args.menu or args.command):
        print("Error: Nothing to do; give --menu, --txt, --heli, --rsam or --command")
        return False

    if wants_data:
        if not args.channel:
            print("Error: --channel is required for --txt, --heli and --rsam")
            return False
        if not args.time:
            print("Error: --time is required for --txt, --heli and --rsam")
            return False
        try:
            parse_channel_arg(args.channel)
        except ValueError as e:
            print(f"Error: {e}")
            return False
        try:
            parse_time_span(args.time)
        except ValueError as e:
            print(f"Error: Invalid time span {args.time!r}: {e}")
            return False

    return True


def parse_channel_arg(text: str) -> Scnl:
    """Parse a --channel value; a missing location becomes '--'."""
    return Scnl.parse(text)


def parse_time_span(text: str) -> TimeSpan:
    """Parse a --time value of the form START,END.

    Raises:
        ValueError: If either end is unparseable or END precedes START
    """
    start, sep, end = text.partition(",")
    if not sep:
        raise ValueError("expected START,END")
    return TimeSpan.from_datetimes(parse_time(start), parse_time(end))


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Merge --config file settings with command-line overrides.

    Raises:
        ConfigurationError: If the file or the merged settings are invalid
    """
    settings = {}
    if args.config:
        settings = ClientConfig.from_yaml(args.config).to_dict()
    if args.server:
        settings['server'] = args.server
    if args.port is not None:
        settings['port'] = args.port
    if args.idle_timeout is not None:
        settings['idle_timeout'] = args.idle_timeout
    return ClientConfig.from_dict(settings)


def setup_logging(level: str):
    """Configure application logging.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), None)

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def run(args: argparse.Namespace, config: ClientConfig) -> int:
    """Run every requested action in turn; returns the exit code."""
    logger = logging.getLogger(__name__)
    compress = not args.no_compress
    client = WWSClient.from_config(config)

    with client:
        if args.menu:
            logger.debug(f"Requesting menu from {config.server}:{config.port}")
            write_menu(client.get_channels(metadata=args.metadata))

        if args.txt or args.heli or args.rsam is not None:
            scnl = parse_channel_arg(args.channel)
            span = parse_time_span(args.time)

            if args.txt:
                logger.debug(f"Requesting {scnl} from {config.server}:{config.port} for {span}")
                print("dumping samples as text\n")
                write_wave(client.get_wave(scnl, span, compress))

            if args.rsam is not None:
                logger.debug(f"Requesting RSAM {scnl} ({args.rsam}s) for {span}")
                print("dumping RSAM as text\n")
                write_rsam(client.get_rsam_data(scnl, span, args.rsam, compress))

            if args.heli:
                logger.debug(f"Requesting helicorder data {scnl} for {span}")
                print("dumping Heli data as text\n")
                write_helicorder(client.get_helicorder(scnl, span, compress))

        if args.command:
            logger.debug(f"Sending: {args.command}")
            client.send_command(args.command)

    failures = client.events.count('request_failed')
    if failures:
        logger.warning(f"{failures} request(s) failed")
        return 1
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the command-line client.

    This function:
    1. Parses command-line arguments
    2. Sets up logging
    3. Validates arguments and builds the client config
    4. Runs the requested actions
    5. Returns exit code

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:]

    Returns:
        Exit code (0 = success, 1 = error or failed request)

    Example:
        sys.exit(main())
    """
    parsed_args = parse_args(args)

    setup_logging(parsed_args.log_level)

    logger = logging.getLogger(__name__)
    logger.debug(f"Arguments: server={parsed_args.server}, port={parsed_args.port}")

    if not validate_args(parsed_args):
        return 1

    try:
        config = build_config(parsed_args)
    except ConfigurationError as e:
        print(e.format_user_message())
        return 1

    try:
        exit_code = run(parsed_args, config)
    except WWSError as e:
        logger.error(e.format_log_message())
        print(f"Error: {e.message}")
        return 1

    logger.debug(f"Exiting with code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
