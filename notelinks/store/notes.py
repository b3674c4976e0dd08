"""In-memory note and folder hierarchy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Union
from uuid import uuid4

from ..data.document import EMPTY_DOCUMENT
from ..data.models import Folder, Note
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

Item = Union[Note, Folder]

WELCOME_CONTENT = (
    '{"type":"doc","content":[{"type":"paragraph","content":[{"type":"text","text":'
    '"Welcome to your note editor! Try typing some notes with special syntax like '
    '#tags, [[wiki links]], or <<cross links>>."}]}]}'
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NoteTree:
    """Notes and folders linked by ``parent_id``, plus the current selection.

    Items without a parent are roots. A parent chain may be corrupted into a
    cycle by hand-edited state; traversals guard against that.
    """

    def __init__(self, items: Iterable[Item] = (), selected_note_id: Optional[str] = None) -> None:
        self._items: Dict[str, Item] = {item.id: item for item in items}
        self.selected_note_id = selected_note_id if selected_note_id in self._items else None

    @classmethod
    def with_welcome_note(cls) -> "NoteTree":
        tree = cls()
        tree.create_note("Welcome", content=WELCOME_CONTENT)
        return tree

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    def items(self) -> List[Item]:
        return list(self._items.values())

    def notes(self) -> List[Note]:
        return [item for item in self._items.values() if isinstance(item, Note)]

    @property
    def selected_note(self) -> Optional[Note]:
        item = self._items.get(self.selected_note_id) if self.selected_note_id else None
        return item if isinstance(item, Note) else None

    def create_note(
        self,
        title: str,
        parent_id: Optional[str] = None,
        content: str = EMPTY_DOCUMENT,
    ) -> str:
        """Create a note, select it and return its id."""
        self._check_parent(parent_id)
        now = _utcnow()
        note = Note(
            id=str(uuid4()),
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
            parent_id=parent_id,
        )
        self._items[note.id] = note
        self._touch(parent_id, now)
        self.selected_note_id = note.id
        return note.id

    def create_folder(self, title: str, parent_id: Optional[str] = None) -> str:
        self._check_parent(parent_id)
        now = _utcnow()
        folder = Folder(id=str(uuid4()), title=title, created_at=now, updated_at=now, parent_id=parent_id)
        self._items[folder.id] = folder
        self._touch(parent_id, now)
        return folder.id

    def rename_item(self, item_id: str, title: str) -> bool:
        item = self._items.get(item_id)
        if item is None:
            return False
        item.title = title
        item.updated_at = _utcnow()
        return True

    def update_note_content(self, note_id: str, content: str) -> bool:
        note = self._items.get(note_id)
        if not isinstance(note, Note):
            return False
        note.content = content
        note.updated_at = _utcnow()
        return True

    def select_note(self, note_id: str) -> bool:
        if not isinstance(self._items.get(note_id), Note):
            return False
        self.selected_note_id = note_id
        return True

    def get_child_items(self, parent_id: Optional[str] = None) -> List[Item]:
        """Children of *parent_id* (roots for ``None``), folders first, then by title."""
        if parent_id is not None and not isinstance(self._items.get(parent_id), Folder):
            return []
        children = [item for item in self._items.values() if item.parent_id == parent_id]
        return sorted(
            children,
            key=lambda item: (not isinstance(item, Folder), item.title.casefold(), item.title),
        )

    def collect_descendants(self, item_id: str) -> List[str]:
        """Return the ids below *item_id*, parents before children.

        A parent cycle is logged and the branch that closes it is cut.
        """
        children_by_parent: Dict[str, List[str]] = {}
        for item in self._items.values():
            if item.parent_id is not None:
                children_by_parent.setdefault(item.parent_id, []).append(item.id)

        visited: Set[str] = {item_id}
        descendants: List[str] = []
        stack = list(reversed(children_by_parent.get(item_id, [])))
        while stack:
            current = stack.pop()
            if current in visited:
                LOGGER.warning("Cycle detected in item hierarchy at %s while collecting %s", current, item_id)
                continue
            visited.add(current)
            descendants.append(current)
            stack.extend(reversed(children_by_parent.get(current, [])))
        return descendants

    def delete_item(self, item_id: str) -> List[str]:
        """Delete *item_id* and everything below it; return the removed ids."""
        item = self._items.get(item_id)
        if item is None:
            return []
        removed = [item_id, *self.collect_descendants(item_id)]
        for removed_id in removed:
            self._items.pop(removed_id, None)
        if item.parent_id is not None:
            self._touch(item.parent_id, _utcnow())
        if self.selected_note_id in removed:
            self.selected_note_id = None
        LOGGER.info("Deleted %s item(s) starting at %s", len(removed), item_id)
        return removed

    def _check_parent(self, parent_id: Optional[str]) -> None:
        if parent_id is None:
            return
        parent = self._items.get(parent_id)
        if parent is None:
            raise ValueError(f"Unknown parent item: {parent_id}")
        if not isinstance(parent, Folder):
            raise ValueError(f"Parent item {parent_id} is not a folder")

    def _touch(self, item_id: Optional[str], when: datetime) -> None:
        item = self._items.get(item_id) if item_id else None
        if item is not None:
            item.updated_at = when

    def to_dict(self) -> Dict[str, Any]:
        """Serialise as ``[id, item]`` pairs with ISO-8601 dates."""
        return {
            "items": [[item.id, _item_to_dict(item, self)] for item in self._items.values()],
            "rootItems": [item.id for item in self._items.values() if item.parent_id is None],
            "selectedNoteId": self.selected_note_id,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "NoteTree":
        """Rebuild a tree from :meth:`to_dict` output.

        Raises ``ValueError`` when the payload does not have the expected shape.
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise ValueError("Persisted note state must be an object with an 'items' list")
        items: List[Item] = []
        for entry in payload["items"]:
            if not isinstance(entry, (list, tuple)) or len(entry) != 2 or not isinstance(entry[1], dict):
                raise ValueError(f"Malformed persisted item entry: {entry!r}")
            items.append(_item_from_dict(str(entry[0]), entry[1]))
        return cls(items, selected_note_id=payload.get("selectedNoteId"))


def _item_to_dict(item: Item, tree: NoteTree) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": item.id,
        "title": item.title,
        "type": item.item_type,
        "parentId": item.parent_id,
        "createdAt": item.created_at.isoformat(),
        "updatedAt": item.updated_at.isoformat(),
    }
    if isinstance(item, Note):
        payload["content"] = item.content
    else:
        payload["children"] = [child.id for child in tree.items() if child.parent_id == item.id]
    return payload


def _item_from_dict(item_id: str, payload: Dict[str, Any]) -> Item:
    title = payload.get("title", payload.get("name", ""))
    created_at = _parse_timestamp(payload.get("createdAt"))
    updated_at = _parse_timestamp(payload.get("updatedAt"), default=created_at)
    parent_id = payload.get("parentId") or None
    if payload.get("type") == "folder":
        return Folder(
            id=item_id,
            title=str(title),
            created_at=created_at,
            updated_at=updated_at,
            parent_id=parent_id,
        )
    content = payload.get("content")
    return Note(
        id=item_id,
        title=str(title),
        content=content if isinstance(content, str) else EMPTY_DOCUMENT,
        created_at=created_at,
        updated_at=updated_at,
        parent_id=parent_id,
    )


def _parse_timestamp(value: Any, default: Optional[datetime] = None) -> datetime:
    if isinstance(value, str) and value:
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            LOGGER.warning("Invalid timestamp %r in persisted state", value)
    return default or _utcnow()
