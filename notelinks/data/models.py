"""Dataclasses describing the core data structures handled by the extraction engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional


@dataclass(slots=True)
class Mark:
    """An inline annotation attached to a leaf node (e.g. a mention)."""

    type: str
    attrs: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class DocumentNode:
    """A plain, editor-independent snapshot of one node of a rich document."""

    type: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    marks: List[Mark] = field(default_factory=list)
    content: List["DocumentNode"] = field(default_factory=list)
    text: Optional[str] = None


def entity_key(kind: str, label: str) -> str:
    """Return the attribute-store key identifying the entity ``(kind, label)``."""
    return f"{kind}:{label}"


@dataclass(slots=True)
class Entity:
    """A typed, labelled concept recognised in a note."""

    kind: str
    label: str
    attributes: Optional[Dict[str, Any]] = None

    @property
    def key(self) -> str:
        return entity_key(self.kind, self.label)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "label": self.label, "attributes": self.attributes}


@dataclass(slots=True)
class EntityRef:
    """One end of a triple."""

    kind: str
    label: str
    attrs: Optional[Dict[str, Any]] = None

    @property
    def key(self) -> str:
        return entity_key(self.kind, self.label)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "label": self.label, "attrs": self.attrs}


@dataclass(slots=True)
class Triple:
    """A directed subject-predicate-object relationship between two entities."""

    subject: EntityRef
    predicate: str
    object: EntityRef

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject.to_dict(),
            "predicate": self.predicate,
            "object": self.object.to_dict(),
        }


@dataclass(slots=True)
class CrossLink:
    """A reference to another note by identity, with a display label."""

    note_id: str
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"noteId": self.note_id, "label": self.label}


@dataclass(slots=True)
class Connections:
    """Everything extracted from a single document snapshot, in document order."""

    tags: List[str] = field(default_factory=list)
    mentions: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)
    triples: List[Triple] = field(default_factory=list)
    backlinks: List[str] = field(default_factory=list)
    crosslinks: List[CrossLink] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(
            (
                self.tags,
                self.mentions,
                self.links,
                self.entities,
                self.triples,
                self.backlinks,
                self.crosslinks,
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tags": list(self.tags),
            "mentions": list(self.mentions),
            "links": list(self.links),
            "entities": [entity.to_dict() for entity in self.entities],
            "triples": [triple.to_dict() for triple in self.triples],
            "backlinks": list(self.backlinks),
            "crosslinks": [link.to_dict() for link in self.crosslinks],
        }


@dataclass(slots=True)
class Note:
    """A note in the hierarchy; ``content`` holds the serialised document JSON."""

    item_type: ClassVar[str] = "note"

    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    parent_id: Optional[str] = None


@dataclass(slots=True)
class Folder:
    """A folder grouping notes and other folders."""

    item_type: ClassVar[str] = "folder"

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    parent_id: Optional[str] = None


@dataclass(slots=True)
class GraphNode:
    """A vertex of the corpus-wide connection graph."""

    node_id: str
    label: str
    node_type: str
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class GraphEdge:
    """A directed, typed edge of the connection graph."""

    source_id: str
    target_id: str
    edge_type: str
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ConnectionGraph:
    """Container aggregating graph nodes and edges for export and analytics."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
