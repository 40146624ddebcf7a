"""
Slack Notifier — one message per incident.

Formats incidents as Block Kit messages and posts or edits them through
the Slack Web API (chat.postMessage / chat.update) using the run's shared
aiohttp session.

Without a bot token and channel id the notifier runs dry: nothing is
sent, the intended action is printed and None is returned in place of a
message timestamp.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from status_sync import console
from status_sync.errors import NotifyError
from status_sync.extractor import render_latest_update
from status_sync.feed_parser import parse_pub_date
from status_sync.models import IncidentRecord, SlackConfig, Status, TrackerSettings

SLACK_API_URL = "https://slack.com/api"

# Section blocks accept at most 3000 characters
MAX_SECTION_LENGTH = 2900
_MORE_SUFFIX = "\n\n_...and more_"


@dataclass(frozen=True)
class SlackMessage:
    """Rendered message content: fallback text plus Block Kit blocks."""

    title: str
    text: str
    blocks: List[Dict[str, Any]] = field(default_factory=list)


def format_timestamp(moment: datetime) -> str:
    """Format a moment in UTC, e.g. ``Oct 18, 2026, 07:14 AM UTC``."""
    utc = moment.astimezone(timezone.utc)
    return f"{utc:%b} {utc.day}, {utc:%Y, %I:%M %p} UTC"


def truncate_text(text: str, max_length: int = MAX_SECTION_LENGTH) -> str:
    """Cut text to fit a section block, marking that it was cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 20] + _MORE_SUFFIX


def build_incident_message(
    incident: IncidentRecord,
    status: Status,
    settings: TrackerSettings,
    checked_at: Optional[datetime] = None,
) -> SlackMessage:
    """
    Build the Slack message for an incident.

    Layout: header with the title, the latest update rendered as mrkdwn,
    and a context line linking back to the status page.
    """
    checked_at = checked_at or datetime.now(timezone.utc)
    emoji = settings.header_emoji
    body = render_latest_update(incident.description)
    started = parse_pub_date(incident.published)

    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"{emoji} {incident.title} {emoji}",
                "emoji": True,
            },
        },
        {"type": "divider"},
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": truncate_text(body) or "_No details yet._"},
        },
        {"type": "divider"},
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": (
                        f"<{incident.link}|View on status page>  ·  "
                        f"Started: {format_timestamp(started)}  ·  "
                        f"Last checked: {format_timestamp(checked_at)}"
                    ),
                }
            ],
        },
    ]

    return SlackMessage(
        title=incident.title,
        text=f"{settings.message_prefix}: {incident.title} - {status.value}",
        blocks=blocks,
    )


class SlackNotifier:
    """
    Posts and edits incident messages in a single Slack channel.

    Attributes:
        config: Bot token and channel id.
        dry_run: True when nothing will actually be sent.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession],
        config: SlackConfig,
        request_timeout: float = 15.0,
        force_dry_run: bool = False,
    ) -> None:
        self.config = config
        self.dry_run = force_dry_run or session is None or not config.is_configured
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=request_timeout or None)

    async def send(self, message: SlackMessage) -> Optional[str]:
        """Post a new message, returning its ``ts``."""
        if self.dry_run:
            console.print_dry_run("post", message.title)
            return None

        ts = await self._call("chat.postMessage", self._payload(message), action="post")
        console.print_slack_result("posted", message.title, ts)
        return ts

    async def edit(self, message_ts: str, message: SlackMessage) -> Optional[str]:
        """Replace the content of an existing message, returning its ``ts``."""
        if self.dry_run:
            console.print_dry_run("update", message.title)
            return None

        payload = self._payload(message)
        payload["ts"] = message_ts
        ts = await self._call("chat.update", payload, action="update")
        console.print_slack_result("updated", message.title, ts)
        return ts

    def _payload(self, message: SlackMessage) -> Dict[str, Any]:
        return {
            "channel": self.config.channel_id,
            "text": message.text,
            "blocks": message.blocks,
            "unfurl_links": False,
            "unfurl_media": False,
        }

    async def _call(self, method: str, payload: Dict[str, Any], action: str) -> str:
        """Invoke a Web API method and return the message ``ts``."""
        assert self._session is not None
        headers = {
            "Authorization": f"Bearer {self.config.bot_token}",
            "Content-Type": "application/json; charset=utf-8",
        }

        try:
            async with self._session.post(
                f"{SLACK_API_URL}/{method}",
                json=payload,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                if resp.status >= 400:
                    raise NotifyError(f"Failed to {action} message: HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise NotifyError(f"Failed to {action} message: {exc}") from exc

        if not isinstance(data, dict) or not data.get("ok"):
            error = data.get("error", "unknown_error") if isinstance(data, dict) else "bad_response"
            raise NotifyError(f"Failed to {action} message: {error}")

        return str(data.get("ts") or payload.get("ts", ""))
