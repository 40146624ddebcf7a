"""
Reconciler — the core of a sync run.

Walks the freshly parsed feed, newest first, and decides for every
incident whether to post a new Slack message, edit the existing one, or
do nothing:

  - unknown GUID       -> post, and remember the message ts
  - known, hash moved  -> edit the remembered message in place
  - known, same hash   -> skip

On the very first run (empty state) only the newest incident is posted;
the backlog behind it is recorded with no message so the channel is not
flooded. Those suppressed incidents stay silent for good, even if they
are later updated. Incidents are never removed from state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Protocol

from status_sync import console
from status_sync.extractor import extract_current_status, fingerprint
from status_sync.models import IncidentRecord, Status, TrackedIncidentState, TrackerSettings
from status_sync.slack import SlackMessage, build_incident_message
from status_sync.state import StateStore


class Notifier(Protocol):
    """Anything that can post and edit a message, returning its id."""

    async def send(self, message: SlackMessage) -> Optional[str]:
        ...

    async def edit(self, message_ts: str, message: SlackMessage) -> Optional[str]:
        ...


@dataclass
class ReconcileSummary:
    """Counts of what a reconciliation pass did."""

    created: int = 0
    suppressed: int = 0
    updated: int = 0
    unchanged: int = 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Reconciler:
    """
    Syncs one feed snapshot against the state store.

    The store must be freshly loaded: whether it was empty is captured
    at construction and drives the first-run suppression.
    """

    def __init__(
        self,
        store: StateStore,
        notifier: Notifier,
        settings: TrackerSettings,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.settings = settings
        self._clock = clock
        self.was_state_empty_at_load = store.is_empty()

    async def reconcile(self, incidents: Iterable[IncidentRecord]) -> ReconcileSummary:
        """
        Process incidents in feed order. Notifier calls are awaited one
        at a time; a NotifyError aborts the pass with the store only
        partially updated in memory.
        """
        summary = ReconcileSummary()

        for incident in incidents:
            content_hash = fingerprint(incident.description)
            status = extract_current_status(incident.description)
            existing = self.store.get(incident.id)

            if existing is None:
                if self.was_state_empty_at_load and summary.created > 0:
                    self._track(incident, content_hash, status, message_ts=None)
                    console.print_suppressed(incident.title)
                    summary.suppressed += 1
                    continue

                console.print_new_incident(incident.title, status)
                message_ts = await self.notifier.send(self._message(incident, status))
                self._track(incident, content_hash, status, message_ts)
                summary.created += 1

            elif existing.fingerprint != content_hash:
                console.print_updated_incident(incident.title, existing.status, status)
                message_ts = existing.message_ts
                if message_ts:
                    edited_ts = await self.notifier.edit(
                        message_ts, self._message(incident, status)
                    )
                    message_ts = edited_ts or message_ts

                existing.fingerprint = content_hash
                existing.status = status
                existing.last_updated = self._now_iso()
                existing.message_ts = message_ts
                summary.updated += 1

            else:
                if self.settings.log_level == "DEBUG":
                    console.print_no_changes(incident.title, status)
                summary.unchanged += 1

        return summary

    def _track(
        self,
        incident: IncidentRecord,
        content_hash: str,
        status: Status,
        message_ts: Optional[str],
    ) -> None:
        self.store.put(
            incident.id,
            TrackedIncidentState(
                title=incident.title,
                fingerprint=content_hash,
                status=status,
                first_seen=incident.published,
                last_updated=self._now_iso(),
                message_ts=message_ts,
                link=incident.link,
            ),
        )

    def _message(self, incident: IncidentRecord, status: Status) -> SlackMessage:
        return build_incident_message(incident, status, self.settings, self._clock())

    def _now_iso(self) -> str:
        return self._clock().astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
