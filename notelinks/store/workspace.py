"""The application state: note hierarchy, entity attributes and their persistence."""
from __future__ import annotations

import pathlib
from typing import Any, Dict, List, Mapping, Optional

from ..data.models import Connections, CrossLink
from ..syntax.connections import extract_connections
from ..syntax.crosslinks import resolve_crosslinks_for_note
from ..utils.logging import get_logger
from .attributes import EntityAttributeStore, merge_entity_attributes
from .notes import Item, NoteTree
from .persistence import DebouncedWriter, JsonFileStorage

LOGGER = get_logger(__name__)

NOTES_STORAGE_KEY = "notes-app-data"
ENTITY_ATTRIBUTES_STORAGE_KEY = "entity-attributes"
DEFAULT_DEBOUNCE_SECONDS = 0.3


class NotesWorkspace:
    """Single owner of the notes and entity attributes of one application run.

    Every mutation schedules a debounced write of the affected state when a
    storage backend is configured.
    """

    def __init__(
        self,
        tree: Optional[NoteTree] = None,
        attributes: Optional[EntityAttributeStore] = None,
        storage: Optional[JsonFileStorage] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.tree = tree if tree is not None else NoteTree.with_welcome_note()
        self.attributes = attributes if attributes is not None else EntityAttributeStore()
        self.storage = storage
        self._notes_writer: Optional[DebouncedWriter] = None
        self._attributes_writer: Optional[DebouncedWriter] = None
        if storage is not None:
            self._notes_writer = DebouncedWriter(storage, NOTES_STORAGE_KEY, debounce_seconds)
            self._attributes_writer = DebouncedWriter(
                storage, ENTITY_ATTRIBUTES_STORAGE_KEY, debounce_seconds
            )

    @classmethod
    def load(
        cls,
        storage: JsonFileStorage,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> "NotesWorkspace":
        """Restore the workspace persisted in *storage*, starting fresh where it is missing or corrupt."""
        tree: Optional[NoteTree] = None
        raw_notes = storage.read(NOTES_STORAGE_KEY)
        if raw_notes is not None:
            try:
                tree = NoteTree.from_dict(raw_notes)
            except ValueError as exc:
                LOGGER.error("Failed to load persisted notes, starting fresh: %s", exc)
        raw_attributes = storage.read(ENTITY_ATTRIBUTES_STORAGE_KEY)
        attributes = (
            EntityAttributeStore.from_dict(raw_attributes) if raw_attributes is not None else None
        )
        workspace = cls(tree, attributes, storage=storage, debounce_seconds=debounce_seconds)
        LOGGER.info(
            "Loaded workspace with %s items and %s entity attribute entries",
            len(workspace.tree),
            len(workspace.attributes),
        )
        return workspace

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "NotesWorkspace":
        storage_cfg = config.get("storage", {}) or {}
        storage = JsonFileStorage(pathlib.Path(storage_cfg.get("directory", ".notelinks")))
        return cls.load(
            storage,
            debounce_seconds=float(storage_cfg.get("debounce_seconds", DEFAULT_DEBOUNCE_SECONDS)),
        )

    # Hierarchy operations

    def create_note(self, title: str, parent_id: Optional[str] = None, content: Optional[str] = None) -> str:
        if content is None:
            note_id = self.tree.create_note(title, parent_id)
        else:
            note_id = self.tree.create_note(title, parent_id, content=content)
        self._notes_changed()
        return note_id

    def create_folder(self, title: str, parent_id: Optional[str] = None) -> str:
        folder_id = self.tree.create_folder(title, parent_id)
        self._notes_changed()
        return folder_id

    def rename_item(self, item_id: str, title: str) -> bool:
        changed = self.tree.rename_item(item_id, title)
        if changed:
            self._notes_changed()
        return changed

    def delete_item(self, item_id: str) -> List[str]:
        removed = self.tree.delete_item(item_id)
        if removed:
            self._notes_changed()
        return removed

    def select_note(self, note_id: str) -> bool:
        changed = self.tree.select_note(note_id)
        if changed:
            self._notes_changed()
        return changed

    def update_note_content(self, note_id: str, content: str) -> bool:
        changed = self.tree.update_note_content(note_id, content)
        if changed:
            self._notes_changed()
        return changed

    def get_child_items(self, parent_id: Optional[str] = None) -> List[Item]:
        return self.tree.get_child_items(parent_id)

    # Connections

    def get_connections_for_note(self, note_id: str) -> Connections:
        note = self.tree.get(note_id)
        if note is None or note.item_type != "note":
            return Connections()
        return extract_connections(note.content)

    def get_backlinks_for_note(self, note_id: str) -> List[CrossLink]:
        return resolve_crosslinks_for_note(note_id, self.tree.notes())

    def entities_for_note(self, note_id: str) -> List[Dict[str, Any]]:
        """Entities of *note_id* with declared attributes merged with stored overrides."""
        return [
            {
                "kind": entity.kind,
                "label": entity.label,
                "key": entity.key,
                "attributes": merge_entity_attributes(entity, self.attributes),
            }
            for entity in self.get_connections_for_note(note_id).entities
        ]

    # Entity attributes

    def get_entity_attributes(self, key: str) -> Dict[str, Any]:
        return self.attributes.get(key)

    def set_entity_attributes(self, key: str, attributes: Mapping[str, Any]) -> None:
        self.attributes.set(key, attributes)
        if self._attributes_writer is not None:
            self._attributes_writer.schedule(self.attributes.to_dict())

    # Persistence

    def flush(self) -> None:
        """Write any pending state immediately."""
        for writer in (self._notes_writer, self._attributes_writer):
            if writer is not None:
                writer.flush()

    def close(self) -> None:
        self.flush()

    def _notes_changed(self) -> None:
        if self._notes_writer is not None:
            self._notes_writer.schedule(self.tree.to_dict())
