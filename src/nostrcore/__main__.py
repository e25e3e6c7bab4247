"""Command-line tools for inspecting events and wire frames.

Examples:
    ```bash
    python -m nostrcore id unsigned.json          # print the event id
    python -m nostrcore verify event.json         # valid / invalid_id / ...
    echo '["EOSE","feed"]' | python -m nostrcore decode --direction to_client -
    python -m nostrcore --config relay.yaml decode frame.json
    ```

Exit codes: 0 on success (valid event, decodable frame), 1 on a rejected
event or frame, 2 on usage or configuration errors.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, TextIO

from nostrcore.core.config import EngineConfig
from nostrcore.core.exceptions import (
    ConfigurationError,
    CryptoError,
    DecodeError,
    MalformedEventError,
)
from nostrcore.core.logger import Logger, StructuredFormatter
from nostrcore.protocol.codec import EventCodec
from nostrcore.protocol.gate import SignatureGate
from nostrcore.protocol.wire import Direction, MessageCodec


EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2

logger = Logger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="nostrcore", description="Nostr event and message tools")
    parser.add_argument("--config", type=Path, help="Engine config YAML (logging, limits)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: from config, else INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    id_cmd = commands.add_parser("id", help="Compute the id of an unsigned event")
    id_cmd.add_argument("input", help="JSON file, or - for stdin")
    id_cmd.add_argument(
        "--canonical", action="store_true", help="Also print the canonical serialization"
    )

    verify_cmd = commands.add_parser("verify", help="Check the id and signature of an event")
    verify_cmd.add_argument("input", help="JSON file, or - for stdin")

    decode_cmd = commands.add_parser("decode", help="Decode a wire frame")
    decode_cmd.add_argument("input", help="File holding one frame, or - for stdin")
    decode_cmd.add_argument(
        "--direction",
        choices=[d.value for d in Direction],
        default=Direction.TO_RELAY.value,
        help="Who sent the frame (default: to_relay)",
    )

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Install a single stderr handler rendering structured key=value records."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _read(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _read_json(source: str) -> Any:
    return json.loads(_read(source))


def cmd_id(args: argparse.Namespace, out: TextIO) -> int:
    codec = EventCodec()
    data = _read_json(args.input)
    try:
        event_id = codec.compute_id(data)
    except MalformedEventError as e:
        logger.error("malformed_event", error=str(e))
        return EXIT_REJECTED
    if args.canonical:
        out.write(codec.canonicalize(data).decode("utf-8") + "\n")
    out.write(event_id + "\n")
    return EXIT_OK


def cmd_verify(args: argparse.Namespace, out: TextIO) -> int:
    result = SignatureGate().verify(_read_json(args.input))
    out.write(result.value + "\n")
    return EXIT_OK if result.is_valid else EXIT_REJECTED


def cmd_decode(args: argparse.Namespace, config: EngineConfig, out: TextIO) -> int:
    codec = MessageCodec(config.relay_info.limitation.max_message_length)
    try:
        message = codec.decode(_read(args.input).strip(), Direction(args.direction))
    except DecodeError as e:
        logger.error("decode_failed", kind=e.kind.value, error=e.detail)
        return EXIT_REJECTED
    out.write(f"{message.MESSAGE_TYPE.value} {message!r}\n")
    return EXIT_OK


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    """Parse arguments, configure logging and run one command."""
    args = parse_args(argv)
    out = out or sys.stdout

    try:
        config = EngineConfig.from_yaml(args.config) if args.config else EngineConfig()
    except (ConfigurationError, FileNotFoundError) as e:
        setup_logging(args.log_level or "INFO")
        logger.error("config_invalid", error=str(e))
        return EXIT_USAGE

    setup_logging(args.log_level or config.logging.level)

    try:
        if args.command == "id":
            return cmd_id(args, out)
        if args.command == "verify":
            return cmd_verify(args, out)
        return cmd_decode(args, config, out)
    except (OSError, ValueError) as e:
        # unreadable input or invalid JSON
        logger.error("input_invalid", error=str(e))
        return EXIT_USAGE
    except CryptoError as e:
        logger.critical("crypto_failure", error=str(e))
        return EXIT_USAGE


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
