"""
Status Checker — one complete sync run.

A run is strictly sequential:
  1. Fetch the RSS feed (any failure aborts before state is touched)
  2. Parse it into incidents, newest first
  3. Load the state file
  4. Reconcile every incident against state, posting/editing in Slack
  5. Save the state file, once, at the very end

If anything fails along the way nothing is written, so the previous
state file stays authoritative and the next scheduled run retries.
Runs against the same state file must not overlap.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import aiohttp

from status_sync import console
from status_sync.errors import FetchError
from status_sync.feed_parser import parse_rss_feed
from status_sync.models import SlackConfig, TrackerSettings
from status_sync.reconciler import Notifier, ReconcileSummary, Reconciler
from status_sync.slack import SlackNotifier
from status_sync.state import StateStore


class StatusChecker:
    """
    Runs a single fetch → reconcile → save cycle.

    Attributes:
        settings: Feed, state and message settings.
        slack_config: Slack credentials (may be empty for a dry run).
    """

    def __init__(
        self,
        settings: TrackerSettings,
        slack_config: SlackConfig,
        force_dry_run: bool = False,
    ) -> None:
        self.settings = settings
        self.slack_config = slack_config
        self.force_dry_run = force_dry_run

    async def run(self, notifier: Optional[Notifier] = None) -> ReconcileSummary:
        """
        Execute the run with a fresh aiohttp session.

        ``notifier`` replaces the Slack notifier, mostly for tests.
        """
        console.print_run_start(self.settings.feed_url)

        async with aiohttp.ClientSession() as session:
            if notifier is None:
                notifier = SlackNotifier(
                    session,
                    self.slack_config,
                    request_timeout=self.settings.request_timeout,
                    force_dry_run=self.force_dry_run,
                )
            body = await self.fetch_feed(session)
            return await self.sync(body, notifier)

    async def fetch_feed(self, session: aiohttp.ClientSession) -> str:
        """GET the feed, raising FetchError on network failure or non-2xx."""
        headers = {"Accept": "application/rss+xml, application/xml"}
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout or None)

        try:
            async with session.get(
                self.settings.feed_url,
                headers=headers,
                timeout=timeout,
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    raise FetchError(
                        f"Failed to fetch RSS: {resp.status} {resp.reason or ''}".rstrip()
                    )
                return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(f"Failed to fetch RSS: {exc}") from exc

    async def sync(self, feed_body: str, notifier: Notifier) -> ReconcileSummary:
        """Parse an already fetched feed, reconcile it and persist state."""
        incidents = parse_rss_feed(feed_body, default_link=self.settings.status_page_url)
        console.print_feed_count(len(incidents))

        store = StateStore.load(self.settings.state_path)
        reconciler = Reconciler(store, notifier, self.settings)
        if reconciler.was_state_empty_at_load:
            console.print_first_run()

        summary = await reconciler.reconcile(incidents)
        store.save()

        console.print_summary(summary.created, summary.updated)
        return summary
