# =============================================================================
# streammail Command Line
# =============================================================================
# Composes a message from command-line arguments and sends it with a
# configured account:
#
#   streammail --to bob@example.com --subject "Report" \
#       --text "See attached." --attach report.pdf
#
# The flow is the same one library callers use:
#   Envelope -> MessageBuilder -> parts -> seal() -> Transmitter
# =============================================================================

import argparse
import logging
import sys
from pathlib import Path

from streammail import __app_name__, __version__
from streammail.config import Config, ConfigError, print_paths
from streammail.core import Envelope
from streammail.errors import CompositionError, SMTPError
from streammail.mime import MessageBuilder
from streammail.smtp import Transmitter, credential_for_account, send_message

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_SEND_FAILED = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="streammail: compose a MIME message and send it over SMTP",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--paths",
        action="store_true",
        help="Print configuration paths and exit",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: XDG config location)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (verbose logging)",
    )

    parser.add_argument("--account", help="Account to send with (default: default_account)")
    parser.add_argument("--to", action="append", default=[], help="To recipient (repeatable)")
    parser.add_argument("--cc", action="append", default=[], help="Cc recipient (repeatable)")
    parser.add_argument("--bcc", action="append", default=[], help="Bcc recipient (repeatable)")
    parser.add_argument("--subject", default="", help="Subject line")

    body = parser.add_mutually_exclusive_group()
    body.add_argument("--text", help="Plain text body")
    body.add_argument("--text-file", type=Path, help="Read the plain text body from a file")

    parser.add_argument("--html-file", type=Path, help="Read an HTML body from a file")
    parser.add_argument(
        "--attach",
        action="append",
        default=[],
        type=Path,
        help="File to attach (repeatable)",
    )

    return parser.parse_args(argv)


def build_message(args: argparse.Namespace, envelope: Envelope) -> MessageBuilder:
    """Compose and seal the message described by ``args``."""
    builder = MessageBuilder(envelope)

    if args.text is not None:
        builder.text(args.text)
    elif args.text_file:
        builder.text(args.text_file.read_text(encoding="utf-8"))

    if args.html_file:
        builder.html(args.html_file.read_text(encoding="utf-8"))

    for path in args.attach:
        builder.attach_file(path)

    builder.seal()
    return builder


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for streammail.

    This function:
        1. Parses command-line arguments
        2. Handles special commands (--paths, --version)
        3. Loads configuration and picks the account
        4. Composes the message and sends it

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Handle --paths flag
    if args.paths:
        print_paths()
        return EXIT_OK

    if not (args.to or args.cc or args.bcc):
        print("At least one of --to, --cc or --bcc is required", file=sys.stderr)
        return EXIT_USAGE

    try:
        config = Config.load(args.config)
        account = config.get_account(args.account)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if not account.smtp_host:
        print(f"Account {account.name!r} has no smtp_host", file=sys.stderr)
        return EXIT_USAGE

    try:
        envelope = Envelope(
            sender=account.sender,
            to=args.to,
            cc=args.cc,
            bcc=args.bcc,
            subject=args.subject,
            credential=credential_for_account(account),
        )
        message = build_message(args, envelope)

        transmitter = Transmitter.from_account(account, timeout=config.smtp.timeout or None)
        send_message(transmitter, message)
    except OSError as e:
        print(f"Could not read input: {e}", file=sys.stderr)
        return EXIT_USAGE
    except (SMTPError, CompositionError) as e:
        print(f"Send failed: {e}", file=sys.stderr)
        return EXIT_SEND_FAILED

    print(f"Sent to {', '.join(envelope.recipients())}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
