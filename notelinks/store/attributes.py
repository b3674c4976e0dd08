"""Per-entity attribute overrides keyed by ``"kind:label"``."""
from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Mapping

from ..data.models import Entity, entity_key
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


class EntityAttributeStore:
    """Untyped mapping from entity key to the attributes a user attached to it.

    Entries are never removed when an entity disappears from the notes;
    attribute work survives text edits.
    """

    def __init__(self, entries: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._entries: Dict[str, Dict[str, Any]] = {}
        for key, attributes in (entries or {}).items():
            self.set(key, attributes)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, key: str) -> Dict[str, Any]:
        """Return a copy of the attributes stored under *key*, or an empty dict."""
        return copy.deepcopy(self._entries.get(key, {}))

    def set(self, key: str, attributes: Mapping[str, Any]) -> None:
        """Replace the attributes stored under *key* (no merge, last writer wins)."""
        if not isinstance(attributes, Mapping):
            raise ValueError(f"Attributes for {key!r} must be a mapping")
        self._entries[key] = copy.deepcopy(dict(attributes))

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._entries)

    @classmethod
    def from_dict(cls, payload: Any) -> "EntityAttributeStore":
        if not isinstance(payload, Mapping):
            LOGGER.warning("Discarding malformed entity attribute state of type %s", type(payload).__name__)
            return cls()
        entries = {
            str(key): value for key, value in payload.items() if isinstance(value, Mapping)
        }
        skipped = len(payload) - len(entries)
        if skipped:
            LOGGER.warning("Skipped %s malformed entity attribute entries", skipped)
        return cls(entries)


def merge_entity_attributes(entity: Entity, store: EntityAttributeStore) -> Dict[str, Any]:
    """Overlay the stored overrides for *entity* on the attributes it declares inline."""
    merged: Dict[str, Any] = dict(entity.attributes or {})
    merged.update(store.get(entity.key))
    return merged


def group_entities_by_kind(entities: Iterable[Entity], query: str = "") -> Dict[str, List[Entity]]:
    """Group *entities* by kind, keeping those whose kind or label contains *query*."""
    needle = query.strip().lower()
    groups: Dict[str, List[Entity]] = {}
    for entity in entities:
        if needle and needle not in entity.label.lower() and needle not in entity.kind.lower():
            continue
        groups.setdefault(entity.kind, []).append(entity)
    return groups


__all__ = [
    "EntityAttributeStore",
    "entity_key",
    "group_entities_by_kind",
    "merge_entity_attributes",
]
