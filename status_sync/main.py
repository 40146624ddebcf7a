"""
Main entry point — run one status sync and exit.

Meant to be invoked periodically by an external scheduler (cron, a
GitHub Actions schedule). Exits 0 on success and 1, printing a single
``Error: ...`` line, on any failure.

Usage:
    python -m status_sync [--config PATH] [--dry-run]
    status-sync [--config PATH] [--dry-run]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from status_sync.checker import StatusChecker
from status_sync.config import load_config, load_slack_config
from status_sync import console


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="status-sync",
        description="Sync Claude status incidents into a Slack channel.",
    )
    parser.add_argument("--config", help="path to config.yaml")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="never call Slack, only print what would be posted",
    )
    return parser.parse_args(argv)


async def async_main(argv: Optional[List[str]] = None) -> None:
    """Async entry point."""
    args = _parse_args(argv)
    settings = load_config(args.config)
    slack_config = load_slack_config()

    if not slack_config.bot_token:
        console.print_warning("SLACK_BOT_TOKEN not set - running in dry-run mode")
    if not slack_config.channel_id:
        console.print_warning("SLACK_CHANNEL_ID not set - running in dry-run mode")

    checker = StatusChecker(settings, slack_config, force_dry_run=args.dry_run)
    await checker.run()
    console.print_done()


def main(argv: Optional[List[str]] = None) -> None:
    """Sync entry point."""
    load_dotenv(find_dotenv(usecwd=True))
    try:
        asyncio.run(async_main(argv))
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as exc:
        console.print_error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
