"""
Incident state persistence.

The state file is a single pretty-printed JSON object mapping each
incident GUID to its TrackedIncidentState. It is the only thing carried
from one run to the next.

A missing or unreadable file means "no state" rather than an error; the
next save simply starts a fresh file. Callers must not run two syncs
against the same file at once, nothing here locks it.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Iterator, Optional

from status_sync import console
from status_sync.models import TrackedIncidentState


class StateStore:
    """
    In-memory view of the state file.

    Attributes:
        path: Location of the JSON state file.
    """

    def __init__(
        self,
        path: str | Path,
        incidents: Optional[Dict[str, TrackedIncidentState]] = None,
    ) -> None:
        self.path = Path(path)
        self._incidents: Dict[str, TrackedIncidentState] = dict(incidents or {})

    @classmethod
    def load(cls, path: str | Path) -> "StateStore":
        """Read the state file, falling back to an empty store."""
        state_path = Path(path)
        if not state_path.exists():
            return cls(state_path)

        try:
            with open(state_path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as exc:
            console.print_warning(f"Could not read state file {state_path}: {exc}")
            return cls(state_path)

        if not isinstance(raw, dict):
            console.print_warning(f"Ignoring state file {state_path}: not a JSON object")
            return cls(state_path)

        incidents: Dict[str, TrackedIncidentState] = {}
        for incident_id, entry in raw.items():
            try:
                incidents[incident_id] = TrackedIncidentState.from_dict(entry)
            except (KeyError, TypeError, AttributeError) as exc:
                console.print_warning(f"Skipping unreadable state entry {incident_id!r}: {exc}")

        return cls(state_path, incidents)

    def save(self) -> None:
        """Overwrite the state file with the current mapping."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {key: value.to_dict() for key, value in self._incidents.items()}

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False)
            fh.write("\n")
        os.replace(tmp_path, self.path)

    # ─── Mapping helpers ──────────────────────────────────────

    def get(self, incident_id: str) -> Optional[TrackedIncidentState]:
        return self._incidents.get(incident_id)

    def put(self, incident_id: str, state: TrackedIncidentState) -> None:
        self._incidents[incident_id] = state

    def is_empty(self) -> bool:
        return not self._incidents

    def as_dict(self) -> Dict[str, TrackedIncidentState]:
        return dict(self._incidents)

    def __contains__(self, incident_id: object) -> bool:
        return incident_id in self._incidents

    def __iter__(self) -> Iterator[str]:
        return iter(self._incidents)

    def __len__(self) -> int:
        return len(self._incidents)
