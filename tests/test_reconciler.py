"""
Tests for the reconciler state machine.

The Slack notifier is replaced with an in-memory fake that records every
call, so these tests exercise create / edit / skip decisions and the
first-run backlog suppression without any network.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from status_sync.errors import NotifyError
from status_sync.extractor import fingerprint
from status_sync.models import IncidentRecord, Status, TrackedIncidentState, TrackerSettings
from status_sync.reconciler import Reconciler
from status_sync.state import StateStore

NOW = datetime(2026, 10, 18, 7, 0, tzinfo=timezone.utc)


class FakeNotifier:
    """Records calls; hands out sequential message ids."""

    def __init__(self, edit_result="same", fail_on_send=False):
        self.sends = []
        self.edits = []
        self.edit_result = edit_result
        self.fail_on_send = fail_on_send

    async def send(self, message):
        if self.fail_on_send:
            raise NotifyError("Failed to post message: channel_not_found")
        self.sends.append(message)
        return f"T{len(self.sends)}"

    async def edit(self, message_ts, message):
        self.edits.append((message_ts, message))
        if self.edit_result == "same":
            return message_ts
        return self.edit_result


def _incident(guid, narrative, title=None):
    return IncidentRecord(
        id=guid,
        title=title or f"Incident {guid}",
        description=narrative,
        published="Fri, 17 Oct 2026 20:14:03 +0000",
        link=f"https://status.claude.com/incidents/{guid}",
    )


def _tracked(narrative, message_ts, status=Status.INVESTIGATING):
    return TrackedIncidentState(
        title="Tracked",
        fingerprint=fingerprint(narrative),
        status=status,
        first_seen="Thu, 16 Oct 2026 09:02:44 +0000",
        last_updated="2026-10-16T09:05:00Z",
        message_ts=message_ts,
        link="https://status.claude.com/incidents/tracked",
    )


def _reconcile(store, notifier, incidents):
    reconciler = Reconciler(store, notifier, TrackerSettings(), clock=lambda: NOW)
    return asyncio.run(reconciler.reconcile(incidents))


INVESTIGATING = "<p><strong>Investigating</strong> - Looking into it.</p>"
RESOLVED = "<p><strong>Resolved</strong> - Fixed.</p>" + INVESTIGATING


class TestFirstRun:
    def test_only_newest_is_posted(self, tmp_path):
        store = StateStore(tmp_path / "s.json")
        notifier = FakeNotifier()
        feed = [
            _incident("newest", RESOLVED),
            _incident("mid", INVESTIGATING),
            _incident("oldest", INVESTIGATING),
        ]

        summary = _reconcile(store, notifier, feed)

        assert len(notifier.sends) == 1
        assert notifier.sends[0].title == "Incident newest"
        assert set(store) == {"newest", "mid", "oldest"}
        assert store.get("newest").message_ts == "T1"
        assert store.get("mid").message_ts is None
        assert store.get("oldest").message_ts is None
        assert (summary.created, summary.suppressed) == (1, 2)

    def test_suppressed_entries_are_fully_recorded(self, tmp_path):
        store = StateStore(tmp_path / "s.json")
        _reconcile(store, FakeNotifier(), [_incident("a", RESOLVED), _incident("b", INVESTIGATING)])

        entry = store.get("b")
        assert entry.fingerprint == fingerprint(INVESTIGATING)
        assert entry.status is Status.INVESTIGATING
        assert entry.first_seen == "Fri, 17 Oct 2026 20:14:03 +0000"
        assert entry.last_updated == "2026-10-18T07:00:00Z"
        assert entry.link == "https://status.claude.com/incidents/b"

    def test_not_first_run_posts_every_new_incident(self, tmp_path):
        store = StateStore(tmp_path / "s.json", {"old": _tracked(INVESTIGATING, "T0")})
        notifier = FakeNotifier()

        _reconcile(store, notifier, [_incident("x", RESOLVED), _incident("y", INVESTIGATING)])

        assert len(notifier.sends) == 2
        assert store.get("x").message_ts == "T1"
        assert store.get("y").message_ts == "T2"

    def test_dry_run_first_run_still_suppresses_backlog(self, tmp_path):
        class DryNotifier(FakeNotifier):
            async def send(self, message):
                self.sends.append(message)
                return None

        store = StateStore(tmp_path / "s.json")
        notifier = DryNotifier()
        _reconcile(store, notifier, [_incident("a", RESOLVED), _incident("b", INVESTIGATING)])

        assert len(notifier.sends) == 1
        assert store.get("a").message_ts is None


class TestExistingIncidents:
    def test_changed_fingerprint_edits_in_place(self, tmp_path):
        store = StateStore(tmp_path / "s.json", {"X": _tracked(INVESTIGATING, "T1")})
        notifier = FakeNotifier()

        summary = _reconcile(store, notifier, [_incident("X", RESOLVED)])

        assert notifier.sends == []
        assert len(notifier.edits) == 1
        assert notifier.edits[0][0] == "T1"
        entry = store.get("X")
        assert entry.fingerprint == fingerprint(RESOLVED)
        assert entry.status is Status.RESOLVED
        assert entry.last_updated == "2026-10-18T07:00:00Z"
        assert entry.message_ts == "T1"
        assert summary.updated == 1

    def test_edit_preserves_origin_fields(self, tmp_path):
        store = StateStore(tmp_path / "s.json", {"X": _tracked(INVESTIGATING, "T1")})
        _reconcile(store, FakeNotifier(), [_incident("X", RESOLVED, title="Renamed")])

        entry = store.get("X")
        assert entry.title == "Tracked"
        assert entry.first_seen == "Thu, 16 Oct 2026 09:02:44 +0000"
        assert entry.link == "https://status.claude.com/incidents/tracked"

    def test_edit_stores_returned_ts(self, tmp_path):
        store = StateStore(tmp_path / "s.json", {"X": _tracked(INVESTIGATING, "T1")})
        _reconcile(store, FakeNotifier(edit_result="T9"), [_incident("X", RESOLVED)])
        assert store.get("X").message_ts == "T9"

    def test_edit_returning_none_keeps_ts(self, tmp_path):
        store = StateStore(tmp_path / "s.json", {"X": _tracked(INVESTIGATING, "T1")})
        _reconcile(store, FakeNotifier(edit_result=None), [_incident("X", RESOLVED)])
        assert store.get("X").message_ts == "T1"

    def test_suppressed_entry_is_never_notified(self, tmp_path):
        store = StateStore(tmp_path / "s.json", {"Y": _tracked(INVESTIGATING, None)})
        notifier = FakeNotifier()

        _reconcile(store, notifier, [_incident("Y", RESOLVED)])

        assert notifier.sends == []
        assert notifier.edits == []
        entry = store.get("Y")
        assert entry.fingerprint == fingerprint(RESOLVED)
        assert entry.status is Status.RESOLVED
        assert entry.message_ts is None

    def test_unchanged_fingerprint_is_skipped(self, tmp_path):
        tracked = _tracked(INVESTIGATING, "T1")
        store = StateStore(tmp_path / "s.json", {"X": tracked})
        notifier = FakeNotifier()

        summary = _reconcile(store, notifier, [_incident("X", INVESTIGATING)])

        assert notifier.sends == [] and notifier.edits == []
        assert store.get("X").last_updated == "2026-10-16T09:05:00Z"
        assert summary.unchanged == 1

    def test_more_detail_under_same_status_is_an_update(self, tmp_path):
        store = StateStore(tmp_path / "s.json", {"X": _tracked(INVESTIGATING, "T1")})
        notifier = FakeNotifier()
        more = "<p><strong>Investigating</strong> - Looking into it. Affects API.</p>"

        _reconcile(store, notifier, [_incident("X", more)])

        assert len(notifier.edits) == 1
        assert store.get("X").status is Status.INVESTIGATING


class TestMessages:
    def test_message_carries_status_and_title(self, tmp_path):
        store = StateStore(tmp_path / "s.json")
        notifier = FakeNotifier()
        _reconcile(store, notifier, [_incident("a", RESOLVED, title="API errors")])

        message = notifier.sends[0]
        assert message.text == "Claude Status: API errors - resolved"
        assert "Last checked: Oct 18, 2026, 07:00 AM UTC" in message.blocks[-1]["elements"][0]["text"]


class TestFailures:
    def test_notify_error_propagates(self, tmp_path):
        store = StateStore(tmp_path / "s.json")
        with pytest.raises(NotifyError):
            _reconcile(store, FakeNotifier(fail_on_send=True), [_incident("a", RESOLVED)])
        assert not (tmp_path / "s.json").exists()
