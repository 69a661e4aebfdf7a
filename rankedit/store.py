"""Process-local session store.

Two independent slots per editor session: the snapshot last uploaded by the
collaborator, and the change-set last submitted by the editor. Both are plain
overwrites. Everything is lost when the process exits.
"""

from __future__ import annotations

from typing import Optional

from rankedit.models import ChangeSet, Snapshot


class SessionStore:
    """Key/value holder for snapshots and change-sets, keyed by editor id."""

    def __init__(self):
        self._snapshots: dict[str, Snapshot] = {}
        self._changes: dict[str, ChangeSet] = {}

    def put_snapshot(self, editor_id: str, snapshot: Snapshot) -> None:
        self._snapshots[editor_id] = snapshot

    def get_snapshot(self, editor_id: str) -> Optional[Snapshot]:
        return self._snapshots.get(editor_id)

    def put_changes(self, editor_id: str, changes: ChangeSet) -> None:
        self._changes[editor_id] = changes

    def get_changes(self, editor_id: str) -> Optional[ChangeSet]:
        return self._changes.get(editor_id)

    def sessions(self) -> list[str]:
        """Editor ids that have an uploaded snapshot, sorted."""
        return sorted(self._snapshots)
