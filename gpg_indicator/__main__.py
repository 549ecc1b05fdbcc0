#!/usr/bin/env python3
"""gpg-indicator command line.

Usage:
    python -m gpg_indicator status [KEY_ID] [--repo PATH]
    python -m gpg_indicator keys
    python -m gpg_indicator unlock [KEY_ID] [--repo PATH]

Without KEY_ID the key comes from GPG_INDICATOR_KEY_ID, then from the
repository's ``user.signingkey``.
"""

import argparse
import asyncio
import getpass
import logging
import sys
from typing import Optional

from .config import IndicatorConfig, load_config
from .errors import (
    AgentError,
    ChildProcessFailed,
    CommandError,
    EmptyRead,
    GpgIndicatorError,
    KeyNotFound,
    MalformedResponse,
    NotOpened,
    ProtocolExhausted,
    TtyBusy,
    UnexpectedOutput,
)
from .git_config import read_signing_config
from .gpg.client import create_client

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_KEY = 2


def describe_error(exc: GpgIndicatorError) -> str:
    """User-facing message for each error kind."""
    if isinstance(exc, KeyNotFound):
        return f"No key in your keyring matches {exc.key_id}"
    if isinstance(exc, AgentError):
        return f"gpg-agent refused the request: {exc.reply}"
    if isinstance(exc, MalformedResponse):
        return f"Could not understand gpg-agent's reply: {exc.reply!r}"
    if isinstance(exc, ChildProcessFailed):
        return f"Unlock failed; check the passphrase ({exc})"
    if isinstance(exc, (UnexpectedOutput, ProtocolExhausted)):
        return f"gpg asked something unexpected: {exc}"
    if isinstance(exc, (NotOpened, EmptyRead, TtyBusy)):
        return f"Terminal unavailable: {exc}"
    if isinstance(exc, CommandError):
        return f"Could not run {exc.command}: {exc}"
    return str(exc)


async def _key_id(args: argparse.Namespace, config: IndicatorConfig) -> Optional[str]:
    if args.key_id:
        return args.key_id
    if config.key_id:
        return config.key_id
    signing = await read_signing_config(args.repo, config=config)
    if not signing.key_id and signing.sign_required:
        logger.warning("commit.gpgsign is on but user.signingkey is not set")
    return signing.key_id


async def cmd_status(args: argparse.Namespace, config: IndicatorConfig) -> int:
    key_id = await _key_id(args, config)
    if not key_id:
        print("No signing key configured", file=sys.stderr)
        return EXIT_NO_KEY

    unlocked = await create_client(config).is_key_id_unlocked(key_id)
    print(f"{key_id}: {'unlocked' if unlocked else 'locked'}")
    return EXIT_OK


async def cmd_keys(args: argparse.Namespace, config: IndicatorConfig) -> int:
    for info in await create_client(config).list_keys():
        print(f"{info.type.value} [{info.capabilities}] {info.fingerprint} keygrip={info.keygrip}")
    return EXIT_OK


async def cmd_unlock(args: argparse.Namespace, config: IndicatorConfig) -> int:
    key_id = await _key_id(args, config)
    if not key_id:
        print("No signing key configured", file=sys.stderr)
        return EXIT_NO_KEY

    client = create_client(config)
    passphrase = getpass.getpass(f"Passphrase for {key_id}: ")
    await client.unlock_key(key_id, passphrase)

    unlocked = await client.is_key_id_unlocked(key_id)
    print(f"{key_id}: {'unlocked' if unlocked else 'locked'}")
    return EXIT_OK if unlocked else EXIT_ERROR


COMMANDS = {
    'status': cmd_status,
    'keys': cmd_keys,
    'unlock': cmd_unlock,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpg-indicator",
        description="Report and unlock the gpg key used for signing commits",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Is the repository's signing key unlocked?
  gpg-indicator status --repo ~/src/project

  # Unlock a specific key
  gpg-indicator unlock 0123456789ABCDEF
        """,
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("status", "Show whether the signing key is unlocked"),
        ("unlock", "Unlock the signing key with a passphrase"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("key_id", nargs="?", help="Key id or fingerprint fragment")
        sub.add_argument("--repo", metavar="PATH", help="Repository to read user.signingkey from")

    subparsers.add_parser("keys", help="List keys with fingerprints and keygrips")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = load_config(args.env_file)
    try:
        return asyncio.run(COMMANDS[args.command](args, config))
    except GpgIndicatorError as exc:
        logger.debug("%s failed", args.command, exc_info=True)
        print(describe_error(exc), file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
