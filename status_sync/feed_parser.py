"""
RSS Feed Parser.

Parses the status page's RSS 2.0 history feed into IncidentRecord
objects, keeping feed order (newest first) and the raw HTML description
untouched so it can be fingerprinted later.

Parsing is permissive about missing fields but strict about structure:
a document that is not well-formed XML raises ParseError.

Uses only the Python standard library (xml.etree) for XML, with
dateutil for the pubDate strings.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import List, Optional
from xml.etree import ElementTree as ET

from dateutil import parser as dateutil_parser

from status_sync.errors import ParseError
from status_sync.models import IncidentRecord

DEFAULT_TITLE = "Unknown Incident"
DEFAULT_LINK = "https://status.claude.com"


def _placeholder_guid() -> str:
    """Time-based identifier for items that carry no guid."""
    return f"unknown-{int(time.time() * 1000)}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_pub_date(dt_string: str) -> datetime:
    """Parse a pubDate string flexibly, defaulting to UTC now on failure."""
    try:
        parsed = dateutil_parser.parse(dt_string)
    except (ValueError, TypeError, OverflowError):
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ─── Public API ───────────────────────────────────────────────


def parse_rss_feed(xml_text: str, default_link: str = DEFAULT_LINK) -> List[IncidentRecord]:
    """
    Parse an RSS 2.0 feed XML string into a list of IncidentRecord objects.

    Args:
        xml_text: Raw XML string of the RSS feed.
        default_link: Link used for items that do not carry one.

    Returns:
        List of IncidentRecord objects in feed order. A feed without a
        channel or without items yields an empty list.

    Raises:
        ParseError: if the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise ParseError(f"Malformed RSS feed: {exc}") from exc

    channel = root if root.tag == "channel" else root.find("channel")
    if channel is None:
        return []

    incidents: List[IncidentRecord] = []
    for item in channel.findall("item"):
        title = (_get_text(item, "title") or "").strip()
        incidents.append(
            IncidentRecord(
                id=(_get_text(item, "guid") or "").strip() or _placeholder_guid(),
                title=title or DEFAULT_TITLE,
                description=_get_text(item, "description") or "",
                published=(_get_text(item, "pubDate") or "").strip() or _now_iso(),
                link=(_get_text(item, "link") or "").strip() or default_link,
            )
        )

    return incidents


# ─── Helpers ──────────────────────────────────────────────────


def _get_text(element: ET.Element, tag: str) -> Optional[str]:
    """Safely get text content from a child element."""
    child = element.find(tag)
    if child is not None and child.text:
        return child.text
    return None
