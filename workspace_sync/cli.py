"""Command-line entry point for validating a tenant and polling its feeds."""

from __future__ import annotations

import argparse
import asyncio
import sys
import typing as typ

import msgspec

from workspace_sync.common.time import parse_rfc3339
from workspace_sync.config import WorkspaceConfig
from workspace_sync.connector import WorkspaceConnector
from workspace_sync.google.errors import WorkspaceConfigError, WorkspaceSyncError
from workspace_sync.logging import configure_logging_from_env

if typ.TYPE_CHECKING:
    import datetime as dt

    from workspace_sync.feeds import FeedPage

_FEEDS = ("admin", "usage")


def _parse_start(value: str) -> dt.datetime:
    try:
        return parse_rfc3339(value)
    except ValueError as exc:
        msg = f"not an RFC 3339 timestamp: {value!r}"
        raise argparse.ArgumentTypeError(msg) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="workspace-sync", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("validate", help="Check credentials and the tenant domain")

    poll = commands.add_parser("poll", help="Poll one page from an activity feed")
    poll.add_argument("--feed", choices=_FEEDS, required=True)
    poll.add_argument("--cursor", default="", help="Cursor from a previous poll")
    poll.add_argument("--page-size", type=int, default=0)
    poll.add_argument(
        "--start",
        type=_parse_start,
        default=None,
        help="RFC 3339 start of the first window when no cursor is given",
    )
    return parser


async def _validate(connector: WorkspaceConnector) -> str:
    await connector.validate()
    primary = await connector.primary_domain()
    return f"configuration is valid (primary domain: {primary or 'unknown'})"


async def _poll(connector: WorkspaceConnector, args: argparse.Namespace) -> FeedPage:
    admin_feed, usage_feed = connector.event_feeds()
    feed = admin_feed if args.feed == "admin" else usage_feed
    return await feed.poll(args.cursor, args.page_size, args.start)


async def _run(args: argparse.Namespace) -> int:
    connector = WorkspaceConnector(WorkspaceConfig.from_env())
    try:
        if args.command == "validate":
            print(await _validate(connector))
        else:
            page = await _poll(connector, args)
            print(msgspec.json.encode(page).decode("utf-8"))
    finally:
        await connector.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the ``workspace-sync`` command.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on configuration or API errors.

    """
    args = _build_parser().parse_args(argv)
    configure_logging_from_env()

    try:
        return asyncio.run(_run(args))
    except WorkspaceConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
    except WorkspaceSyncError as exc:
        print(f"error: {exc}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
