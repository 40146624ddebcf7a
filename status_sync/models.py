"""
Data models for the status sync.

Defines structured representations for feed incidents, the per-incident
state persisted between runs, and the run configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Status(str, Enum):
    """Coarse incident status as announced by the status page."""

    INVESTIGATING = "investigating"
    IDENTIFIED = "identified"
    MONITORING = "monitoring"
    UPDATE = "update"
    RESOLVED = "resolved"
    UNKNOWN = "unknown"

    @property
    def emoji(self) -> str:
        """Slack emoji shortcode shown next to the status label."""
        return _STATUS_EMOJI[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_value(cls, value: Any) -> "Status":
        """Lenient lookup, unrecognised values map to UNKNOWN."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


_STATUS_EMOJI = {
    Status.INVESTIGATING: ":rotating_light:",
    Status.IDENTIFIED: ":mag:",
    Status.MONITORING: ":eyes:",
    Status.UPDATE: ":speech_balloon:",
    Status.RESOLVED: ":white_check_mark:",
    Status.UNKNOWN: ":grey_question:",
}


@dataclass(frozen=True)
class IncidentRecord:
    """
    A single incident item as read from the RSS feed.

    Attributes:
        id: Feed GUID, stable across polls for the same incident.
        title: Human-readable incident title.
        description: Raw HTML narrative, most recent update first.
        published: The item's pubDate, kept verbatim.
        link: URL of the incident on the status page.
    """

    id: str
    title: str
    description: str
    published: str
    link: str


@dataclass
class TrackedIncidentState:
    """
    What we remember about an incident between runs.

    ``message_ts`` is the Slack timestamp of the message announcing the
    incident. ``None`` means the incident is known but was never posted.
    """

    title: str
    fingerprint: str
    status: Status
    first_seen: str
    last_updated: str
    message_ts: Optional[str]
    link: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description_hash": self.fingerprint,
            "status": self.status.value,
            "first_seen": self.first_seen,
            "last_updated": self.last_updated,
            "slack_message_ts": self.message_ts,
            "link": self.link,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackedIncidentState":
        ts = data.get("slack_message_ts")
        return cls(
            title=str(data["title"]),
            fingerprint=str(data["description_hash"]),
            status=Status.from_value(data.get("status", "unknown")),
            first_seen=str(data.get("first_seen", "")),
            last_updated=str(data.get("last_updated", "")),
            message_ts=str(ts) if ts else None,
            link=str(data.get("link", "")),
        )


@dataclass
class TrackerSettings:
    """Settings read from config.yaml."""

    feed_url: str = "https://status.claude.com/history.rss"
    status_page_url: str = "https://status.claude.com"
    state_path: str = ".cache/incidents.json"
    request_timeout: float = 15.0  # seconds, 0 disables
    log_level: str = "INFO"
    message_prefix: str = "Claude Status"
    header_emoji: str = ":clawd-down:"


@dataclass
class SlackConfig:
    """Slack credentials, taken from the environment."""

    bot_token: Optional[str] = None
    channel_id: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.channel_id)
