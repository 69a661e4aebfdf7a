"""Data models for the rankedit editor.

Rank, Tag, Snapshot, RankChange, TagChange and ChangeSet: the typed structures
that flow between the session API, the store, the client and the editor view.
Wire names are camelCase (rankId, lastUpdated, ...); attributes are snake_case.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional


class RecordError(ValueError):
    """A rank, tag, snapshot or change record has the wrong shape."""


class ChangeAction(str, Enum):
    """What a change record does to its rank or tag."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def now_ms() -> int:
    return int(time.time() * 1000)


def _text(d: dict, key: str) -> str:
    """String field; null or missing becomes '', scalars are stringified."""
    value = d.get(key)
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise RecordError(f"'{key}' must be a string")
    return str(value)


def _number(d: dict, key: str, owner: str) -> int:
    value = d.get(key)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise RecordError(f"{owner} has a non-integer {key}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RecordError(f"{owner} has a non-integer {key}")


_TRUE = ("true", "yes", "1")
_FALSE = ("false", "no", "0", "")


def _flag(value: Any, owner: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str) and value.strip().lower() in _TRUE + _FALSE:
        return value.strip().lower() in _TRUE
    raise RecordError(f"{owner} has a non-boolean default flag")


@dataclass
class Rank:
    """A permission/display tier."""

    id: str
    name: str = ""
    prefix: str = ""
    suffix: str = ""
    color: str = ""
    weight: int = 0
    default: bool = False
    permissions: list[str] = field(default_factory=list)

    @property
    def preview(self) -> str:
        return f"{self.prefix}{self.name}{self.suffix}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "prefix": self.prefix,
            "suffix": self.suffix,
            "color": self.color,
            "weight": self.weight,
            "default": self.default,
            "permissions": list(self.permissions),
        }

    @classmethod
    def from_dict(cls, d: dict) -> Rank:
        """Build a Rank from its wire form, defaulting missing fields."""
        if not isinstance(d, dict) or not d.get("id"):
            raise RecordError("Rank records need an 'id'")
        owner = f"Rank {d['id']!r}"
        permissions = d.get("permissions") or []
        if not isinstance(permissions, list):
            raise RecordError(f"{owner} permissions must be a list")
        return cls(
            id=str(d["id"]),
            name=_text(d, "name"),
            prefix=_text(d, "prefix"),
            suffix=_text(d, "suffix"),
            color=_text(d, "color"),
            weight=_number(d, "weight", owner),
            default=_flag(d.get("default"), owner),
            permissions=[str(p) for p in permissions],
        )


@dataclass
class Tag:
    """A cosmetic badge."""

    id: str
    display_name: str = ""
    prefix: str = ""
    suffix: str = ""
    priority: int = 0

    @property
    def preview(self) -> str:
        return f"{self.prefix}{self.display_name}{self.suffix}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "prefix": self.prefix,
            "suffix": self.suffix,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Tag:
        if not isinstance(d, dict) or not d.get("id"):
            raise RecordError("Tag records need an 'id'")
        return cls(
            id=str(d["id"]),
            display_name=_text(d, "displayName"),
            prefix=_text(d, "prefix"),
            suffix=_text(d, "suffix"),
            priority=_number(d, "priority", f"Tag {d['id']!r}"),
        )


def _record_list(d: dict, key: str, parse) -> list[dict]:
    """Raw records under `key`, each checked with `parse` so the view can type them."""
    value = d.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(r, dict) for r in value):
        raise RecordError(f"'{key}' must be a list of objects")
    for i, record in enumerate(value):
        try:
            parse(record)
        except RecordError as e:
            raise RecordError(f"{key}[{i}]: {e}")
    return value


@dataclass
class Snapshot:
    """The full set of ranks and tags as last uploaded by the collaborator.

    Records are kept exactly as uploaded so that a fetch echoes them back
    unchanged; use rank_list()/tag_list() for typed access.
    """

    ranks: list[dict] = field(default_factory=list)
    tags: list[dict] = field(default_factory=list)
    last_updated: Any = None
    version: Any = None
    server_uuid: Optional[str] = None

    def rank_list(self) -> list[Rank]:
        return [Rank.from_dict(r) for r in self.ranks]

    def tag_list(self) -> list[Tag]:
        return [Tag.from_dict(t) for t in self.tags]

    def to_dict(self) -> dict:
        """Serialize to the fetch response shape."""
        return {
            "ranks": self.ranks,
            "tags": self.tags,
            "lastUpdated": self.last_updated,
            "version": self.version,
        }

    def to_upload(self) -> dict:
        """Serialize to the `data` payload of an upload."""
        d = self.to_dict()
        if self.server_uuid is not None:
            d["serverUuid"] = self.server_uuid
        return d

    @classmethod
    def from_dict(cls, d: dict) -> Snapshot:
        if not isinstance(d, dict):
            raise RecordError("Snapshot data must be an object")
        return cls(
            ranks=_record_list(d, "ranks", Rank.from_dict),
            tags=_record_list(d, "tags", Tag.from_dict),
            last_updated=d.get("lastUpdated"),
            version=d.get("version"),
            server_uuid=d.get("serverUuid"),
        )


@dataclass
class _Change:
    """One create/update/delete entry of a change-set.

    `fields` holds every submitted key other than action and the id, in the
    order it was sent; a delete carries none.
    """

    ID_FIELD: ClassVar[str] = "id"

    action: ChangeAction
    record_id: str
    fields: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        d = {"action": self.action.value, self.ID_FIELD: self.record_id}
        d.update(self.fields)
        return d

    @classmethod
    def from_dict(cls, d: dict):
        if not isinstance(d, dict):
            raise RecordError("Change records must be objects")
        try:
            action = ChangeAction(d.get("action"))
        except ValueError:
            raise RecordError(
                f"Unknown change action: {d.get('action')!r} "
                "(expected create, update or delete)"
            )
        record_id = d.get(cls.ID_FIELD)
        if not isinstance(record_id, str) or not record_id:
            raise RecordError(f"Change records need a '{cls.ID_FIELD}'")
        if action == ChangeAction.DELETE:
            fields = {}
        else:
            fields = {k: v for k, v in d.items() if k not in ("action", cls.ID_FIELD)}
        return cls(action=action, record_id=record_id, fields=fields)

    @classmethod
    def list_from(cls, value: Any) -> list:
        if value is None:
            return []
        if not isinstance(value, list):
            raise RecordError("Change lists must be arrays")
        return [cls.from_dict(c) for c in value]


@dataclass
class RankChange(_Change):
    ID_FIELD: ClassVar[str] = "rankId"

    @classmethod
    def for_rank(cls, action: ChangeAction, rank: Rank) -> RankChange:
        """Build the change the editor view submits for a saved rank."""
        return cls(
            action=action,
            record_id=rank.id,
            fields={
                "displayName": rank.name,
                "prefix": rank.prefix,
                "suffix": rank.suffix,
                "color": rank.color,
                "weight": rank.weight,
                "isDefault": rank.default,
                "permissions": list(rank.permissions),
            },
        )

    @classmethod
    def delete(cls, rank_id: str) -> RankChange:
        return cls(action=ChangeAction.DELETE, record_id=rank_id)


@dataclass
class TagChange(_Change):
    ID_FIELD: ClassVar[str] = "tagId"

    @classmethod
    def for_tag(cls, action: ChangeAction, tag: Tag) -> TagChange:
        return cls(
            action=action,
            record_id=tag.id,
            fields={
                "displayName": tag.display_name,
                "prefix": tag.prefix,
                "suffix": tag.suffix,
                "priority": tag.priority,
            },
        )

    @classmethod
    def delete(cls, tag_id: str) -> TagChange:
        return cls(action=ChangeAction.DELETE, record_id=tag_id)


@dataclass
class ChangeSet:
    """The latest batch of edits submitted for a session, pending download."""

    editor_id: str
    server_uuid: Optional[str] = None
    rank_changes: list[RankChange] = field(default_factory=list)
    tag_changes: list[TagChange] = field(default_factory=list)
    version: int = 0
    submitted_at: int = 0

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "editorId": self.editor_id,
            "serverUuid": self.server_uuid,
            "rankChanges": [c.to_dict() for c in self.rank_changes],
            "tagChanges": [c.to_dict() for c in self.tag_changes],
            "version": self.version,
            "submittedAt": self.submitted_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> ChangeSet:
        """Deserialize from a retrieve/download payload."""
        if not isinstance(d, dict):
            raise RecordError("Change-set payload must be an object")
        return cls(
            editor_id=d.get("editorId", ""),
            server_uuid=d.get("serverUuid"),
            rank_changes=RankChange.list_from(d.get("rankChanges")),
            tag_changes=TagChange.list_from(d.get("tagChanges")),
            version=d.get("version", 0),
            submitted_at=d.get("submittedAt", 0),
        )
