#!/usr/bin/env python
"""Talk to the device from the command line.

Usage:
    python scripts/run_client.py get-file /etc/config [--output config.txt]
    python scripts/run_client.py send '{"command": "ping"}' --reply ping

Connection settings come from RPI_LINK_* environment variables or the
client config file (see ``rpi_link.config``).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

LOGGER = logging.getLogger("rpi_link.cli")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--host", help="Device host (overrides RPI_LINK_DEVICE_HOST).")
    parser.add_argument("--timeout", type=float, default=30.0, help="Seconds to wait for the reply (default: 30).")
    commands = parser.add_subparsers(dest="action", required=True)

    get_file = commands.add_parser("get-file", help="Download a file from the device.")
    get_file.add_argument("path", help="Path of the file on the device.")
    get_file.add_argument("--output", help="Local file name (default: the remote base name).")

    send = commands.add_parser("send", help="Send a raw JSON command and print the reply.")
    send.add_argument("message", help="JSON object to send.")
    send.add_argument("--reply", required=True, help="Name of the reply to wait for.")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    from rpi_link.bootstrap import build_client, configure_logging  # type: ignore
    from rpi_link.config import get_settings  # type: ignore
    from rpi_link.network.client import RemoteFaultError  # type: ignore

    settings = get_settings()
    if args.host:
        settings = settings.model_copy(update={"device_host": args.host})
    configure_logging(settings)

    async with build_client(settings) as client:
        try:
            if args.action == "get-file":
                saved = await client.download_file(args.path, args.output, timeout=args.timeout)
                print(saved)
            else:
                reply = await client.request(
                    json.loads(args.message),
                    reply_name=args.reply,
                    timeout=args.timeout,
                )
                print(reply.model_dump_json(by_alias=True, exclude_none=True))
        except RemoteFaultError as exc:
            LOGGER.error("%s: %s", exc, exc.detail)
            return 1
        except asyncio.TimeoutError:
            LOGGER.error("No reply from the device within %.1fs", args.timeout)
            return 2
    return 0


def main() -> int:
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))
    return asyncio.run(run(parse_args()))


if __name__ == "__main__":
    sys.exit(main())
