from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from loguru import logger
from rich.console import Console

from config import setup_directories, setup_logging

from .daemon_client import TRANSPORT_MODES, DaemonClient
from .errors import DaemonUnavailable, VersionReportError
from .proxy import DaemonProxy
from .rich_ui import RichUI
from .version_report import produce_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vpnctl",
        description="Query the local VPN daemon",
    )
    parser.add_argument(
        "--transport",
        choices=TRANSPORT_MODES,
        default=None,
        help="Daemon transport (default: from settings)",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("version", help="Show current version and available upgrades")
    return parser


class DaemonExecutor:
    def __init__(self, daemon_client: DaemonClient, ui: RichUI) -> None:
        self.daemon_client = daemon_client
        self.ui = ui

    async def execute(self, args: argparse.Namespace) -> int:
        handlers = {"version": self._do_version}
        return await handlers[args.command]()

    async def _do_version(self) -> int:
        try:
            await produce_report(DaemonProxy(self.daemon_client))
        except VersionReportError as e:
            self.ui.show_error_chain(e)
            return 1
        return 0


def create_client(mode: Optional[str]) -> DaemonClient:
    try:
        return DaemonClient(mode=mode)
    except ValueError as e:
        raise DaemonUnavailable() from e


async def connect_client(client: DaemonClient) -> DaemonClient:
    try:
        await client.connect()
    except (ConnectionError, OSError, asyncio.TimeoutError) as e:
        raise DaemonUnavailable() from e
    return client


async def main(argv: Optional[Sequence[str]] = None) -> int:
    setup_directories()
    setup_logging()
    ui = RichUI(Console(stderr=True))
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help(sys.stderr)
        return 2

    client: Optional[DaemonClient] = None
    try:
        client = create_client(args.transport)
        await connect_client(client)
        return await DaemonExecutor(client, ui).execute(args)
    except VersionReportError as e:
        logger.error(f"{args.command} failed: {e}")
        ui.show_error_chain(e)
        return 1
    finally:
        if client is not None:
            await client.close()


def run() -> int:
    return asyncio.run(main())


if __name__ == "__main__":
    raise SystemExit(run())
