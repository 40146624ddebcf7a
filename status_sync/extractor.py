"""
Status Extractor.

Reads an incident's raw HTML narrative, as published in the feed's
<description>, and derives:
  - the current coarse Status
  - a Slack mrkdwn rendering of the most recent update
  - a short fingerprint of the raw narrative for change detection

The status page lists updates most-recent-first, so the status keyword
that appears earliest in the markup is taken as the current one. This is
a heuristic over the page's formatting conventions, not a structured
field; keep callers depending on extract_current_status() only.
"""

from __future__ import annotations

import hashlib
import html
import re
from typing import List, Tuple

from status_sync.models import Status

FINGERPRINT_LENGTH = 16

# Check order doubles as the tie-break order. Emphasised labels first,
# then the bare words as a fallback.
_STATUS_PATTERNS: List[Tuple[re.Pattern, Status]] = [
    (re.compile(r"<strong>Resolved</strong>", re.IGNORECASE), Status.RESOLVED),
    (re.compile(r"<strong>Monitoring</strong>", re.IGNORECASE), Status.MONITORING),
    (re.compile(r"<strong>Identified</strong>", re.IGNORECASE), Status.IDENTIFIED),
    (re.compile(r"<strong>Investigating</strong>", re.IGNORECASE), Status.INVESTIGATING),
    (re.compile(r"\bResolved\b", re.IGNORECASE), Status.RESOLVED),
    (re.compile(r"\bMonitoring\b", re.IGNORECASE), Status.MONITORING),
    (re.compile(r"\bIdentified\b", re.IGNORECASE), Status.IDENTIFIED),
    (re.compile(r"\bInvestigating\b", re.IGNORECASE), Status.INVESTIGATING),
]

# Labels that get an emoji when rendered
_LABELLED = (
    Status.INVESTIGATING,
    Status.IDENTIFIED,
    Status.MONITORING,
    Status.UPDATE,
    Status.RESOLVED,
)

_FIRST_PARAGRAPH_RE = re.compile(r"<p>([\s\S]*?)</p>", re.IGNORECASE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_VAR_RE = re.compile(r"</?var[^>]*>", re.IGNORECASE)
_SMALL_RE = re.compile(r"<small>([^<]+)</small>", re.IGNORECASE)
_STRONG_RE = re.compile(r"</?strong>", re.IGNORECASE)
_HTML_TAG_RE = re.compile(r"<[^>]+>")
_TIMESTAMP_LINE_RE = re.compile(r"`([^`]+)`\n+(:[a-z_]+:)\s*\*([^*]+)\*")


def extract_current_status(description: str) -> Status:
    """
    Return the status whose keyword appears first in the narrative.

    >>> extract_current_status("<strong>Investigating</strong> ... <strong>Resolved</strong>")
    <Status.INVESTIGATING: 'investigating'>
    """
    best_position = None
    best_status = Status.UNKNOWN

    for pattern, status in _STATUS_PATTERNS:
        match = pattern.search(description)
        if match and (best_position is None or match.start() < best_position):
            best_position = match.start()
            best_status = status

    return best_status


def render_latest_update(description: str) -> str:
    """
    Render the first (most recent) update paragraph as Slack mrkdwn.

    A narrative without any <p> block is returned unchanged.
    """
    first = _FIRST_PARAGRAPH_RE.search(description)
    if not first:
        return description

    text = _BR_RE.sub("\n", first.group(1))
    text = _VAR_RE.sub("", text)

    # Timestamps become inline code
    text = _SMALL_RE.sub(r"`\1`", text)

    for status in _LABELLED:
        label_re = re.compile(rf"<strong>{status.label}</strong>", re.IGNORECASE)
        text = label_re.sub(f"{status.emoji} *{status.label}*", text)

    text = _STRONG_RE.sub("*", text)
    text = _HTML_TAG_RE.sub("", text)
    text = html.unescape(text.replace("&nbsp;", " ")).strip()

    # Put the timestamp on the same line as the status label
    text = _TIMESTAMP_LINE_RE.sub(r"`\1`  \2 *\3*", text)

    return text.strip()


def fingerprint(description: str) -> str:
    """Short SHA-256 digest of the raw narrative."""
    digest = hashlib.sha256(description.encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]
