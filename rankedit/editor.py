"""Editor view state: what the operator sees and edits for one session.

The view keeps its own copy of the ranks and tags. Saves and deletes are
applied locally first, then submitted. Each edit is tracked as a PendingEdit:

    LOCAL_ONLY -> SYNCING -> CONFIRMED
                          -> FAILED      (local collection restored)

Refreshes only replace the displayed state when the snapshot's version or
lastUpdated actually changed, so a refresh never clobbers local edits with
the same snapshot it was built from.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from rankedit.client import ApiError, EditorClient
from rankedit.config import DEFAULT_POLL_INTERVAL
from rankedit.models import ChangeAction, Rank, RankChange, RecordError, Snapshot, Tag, TagChange

logger = logging.getLogger(__name__)


class EditState(str, Enum):
    """Lifecycle of a single edit."""

    LOCAL_ONLY = "local-only"
    SYNCING = "syncing"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class PendingEdit:
    """One save or delete, from local application to server confirmation."""

    change: Union[RankChange, TagChange]
    previous: list = field(default_factory=list)
    state: EditState = EditState.LOCAL_ONLY
    version: Optional[int] = None
    error: str = ""

    @property
    def failed(self) -> bool:
        return self.state == EditState.FAILED


def sort_ranks(ranks: list[Rank]) -> list[Rank]:
    """Highest weight first; equal weights by id."""
    return sorted(ranks, key=lambda r: (-r.weight, r.id))


def sort_tags(tags: list[Tag]) -> list[Tag]:
    """Highest priority first; equal priorities by id."""
    return sorted(tags, key=lambda t: (-t.priority, t.id))


def _matches(query: str, *values: str) -> bool:
    q = query.strip().lower()
    return not q or any(q in (v or "").lower() for v in values)


class EditorView:
    """Ranks and tags of one editor session, plus the edits made to them."""

    def __init__(self, client: EditorClient):
        self.client = client
        self.ranks: list[Rank] = []
        self.tags: list[Tag] = []
        self.edits: list[PendingEdit] = []
        self.known_version: Any = None
        self.known_updated: Any = None
        self.loaded = False

    # --- Snapshot sync ---

    def apply_snapshot(self, snapshot: Snapshot) -> bool:
        """Replace the displayed state if the snapshot is new.

        Returns True if the view changed.
        """
        if (
            self.loaded
            and snapshot.version == self.known_version
            and snapshot.last_updated == self.known_updated
        ):
            return False
        self.ranks = sort_ranks(snapshot.rank_list())
        self.tags = sort_tags(snapshot.tag_list())
        self.known_version = snapshot.version
        self.known_updated = snapshot.last_updated
        self.loaded = True
        return True

    def refresh(self) -> bool:
        """Fetch the current snapshot and apply it."""
        return self.apply_snapshot(self.client.fetch())

    def poll(
        self,
        stop: threading.Event,
        on_change: Optional[Callable[[EditorView], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Refresh every `interval` seconds until `stop` is set.

        `on_change` runs only when a refresh changed the view. API errors and
        malformed snapshots go to `on_error` (or the log) and polling carries on.
        """
        while not stop.is_set():
            try:
                if self.refresh() and on_change:
                    on_change(self)
            except (ApiError, RecordError) as e:
                if on_error:
                    on_error(e)
                else:
                    logger.warning("Refresh failed: %s", e)
            stop.wait(interval)

    # --- Filtering ---

    def filter_ranks(self, query: str = "") -> list[Rank]:
        return [r for r in self.ranks if _matches(query, r.id, r.name)]

    def filter_tags(self, query: str = "") -> list[Tag]:
        return [t for t in self.tags if _matches(query, t.id, t.display_name)]

    def find_rank(self, rank_id: str) -> Optional[Rank]:
        """A copy of the displayed rank; edits to it show only once saved."""
        rank = next((r for r in self.ranks if r.id == rank_id), None)
        return copy.deepcopy(rank)

    def find_tag(self, tag_id: str) -> Optional[Tag]:
        tag = next((t for t in self.tags if t.id == tag_id), None)
        return copy.deepcopy(tag)

    # --- Edits ---

    def save_rank(self, rank: Rank) -> PendingEdit:
        """Create or update a rank, depending on whether its id is shown."""
        previous = copy.deepcopy(self.ranks)
        action = ChangeAction.UPDATE if self.find_rank(rank.id) else ChangeAction.CREATE
        self.ranks = sort_ranks([r for r in self.ranks if r.id != rank.id] + [rank])
        edit = PendingEdit(change=RankChange.for_rank(action, rank), previous=previous)
        return self._sync(edit, "ranks")

    def delete_rank(self, rank_id: str) -> PendingEdit:
        previous = copy.deepcopy(self.ranks)
        self.ranks = [r for r in self.ranks if r.id != rank_id]
        return self._sync(PendingEdit(change=RankChange.delete(rank_id), previous=previous), "ranks")

    def save_tag(self, tag: Tag) -> PendingEdit:
        """Create or update a tag, depending on whether its id is shown."""
        previous = copy.deepcopy(self.tags)
        action = ChangeAction.UPDATE if self.find_tag(tag.id) else ChangeAction.CREATE
        self.tags = sort_tags([t for t in self.tags if t.id != tag.id] + [tag])
        edit = PendingEdit(change=TagChange.for_tag(action, tag), previous=previous)
        return self._sync(edit, "tags")

    def delete_tag(self, tag_id: str) -> PendingEdit:
        previous = copy.deepcopy(self.tags)
        self.tags = [t for t in self.tags if t.id != tag_id]
        return self._sync(PendingEdit(change=TagChange.delete(tag_id), previous=previous), "tags")

    def _sync(self, edit: PendingEdit, collection: str) -> PendingEdit:
        """Submit a locally applied edit; restore the collection if it fails."""
        self.edits.append(edit)
        edit.state = EditState.SYNCING
        try:
            if isinstance(edit.change, RankChange):
                result = self.client.submit(rank_changes=[edit.change])
            else:
                result = self.client.submit(tag_changes=[edit.change])
        except ApiError as e:
            setattr(self, collection, edit.previous)
            edit.state = EditState.FAILED
            edit.error = str(e)
            logger.warning("%s %s failed: %s", edit.change.action.value, edit.change.record_id, e)
            return edit
        edit.state = EditState.CONFIRMED
        edit.version = result.version
        return edit

    @property
    def failed_edits(self) -> list[PendingEdit]:
        return [e for e in self.edits if e.failed]
