"""Build the corpus-wide connection graph and export JSON snapshots of it."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..data.models import Connections, ConnectionGraph, EntityRef, GraphEdge, GraphNode, Note
from ..syntax.connections import extract_connections
from ..utils.io import write_json
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


def note_node_id(note_id: str) -> str:
    return f"note:{note_id}"


def entity_node_id(kind: str, label: str) -> str:
    return f"entity:{kind}:{label}"


class _GraphBuilder:
    def __init__(self) -> None:
        self.nodes: Dict[str, GraphNode] = {}
        self.edges: List[GraphEdge] = []
        self._edge_keys: Set[Tuple[str, str, str]] = set()

    def add_node(self, node_id: str, label: str, node_type: str, **properties) -> str:
        if node_id not in self.nodes:
            self.nodes[node_id] = GraphNode(node_id=node_id, label=label, node_type=node_type, properties=properties)
        return node_id

    def add_edge(self, source_id: str, target_id: str, edge_type: str, **properties) -> None:
        key = (source_id, target_id, edge_type)
        if key in self._edge_keys:
            return
        self._edge_keys.add(key)
        self.edges.append(GraphEdge(source_id=source_id, target_id=target_id, edge_type=edge_type, properties=properties))

    def add_entity(self, kind: str, label: str, attributes: Optional[dict]) -> str:
        node_id = entity_node_id(kind, label)
        existing = self.nodes.get(node_id)
        if existing is not None:
            # Later declarations refresh the defaults, as the entity manager does.
            if attributes:
                existing.properties["attributes"] = dict(attributes)
            return node_id
        properties = {"kind": kind}
        if attributes:
            properties["attributes"] = dict(attributes)
        return self.add_node(node_id, label, "entity", **properties)

    def add_entity_ref(self, ref: EntityRef) -> str:
        return self.add_entity(ref.kind, ref.label, ref.attrs)


def build_connection_graph(
    notes: Iterable[Note],
    connections: Optional[Dict[str, Connections]] = None,
) -> ConnectionGraph:
    """Aggregate the connections of every note into one graph.

    *connections* may carry already extracted results keyed by note id.
    Wiki-links and cross-links whose target is not a known note id or title
    point at ``note_ref`` placeholder nodes; links back to the note itself
    are dropped.
    """
    notes_list = list(notes)
    extracted = dict(connections or {})
    ids_by_title: Dict[str, str] = {}
    for note in notes_list:
        ids_by_title.setdefault(note.title, note.id)
    known_ids = {note.id for note in notes_list}

    builder = _GraphBuilder()
    for note in notes_list:
        builder.add_node(note_node_id(note.id), note.title, "note")

    def resolve_note(reference: str) -> str:
        if reference in known_ids:
            return note_node_id(reference)
        if reference in ids_by_title:
            return note_node_id(ids_by_title[reference])
        return builder.add_node(f"note_ref:{reference}", reference, "note_ref", placeholder=True)

    for note in notes_list:
        source = note_node_id(note.id)
        found = extracted.get(note.id)
        if found is None:
            found = extract_connections(note.content)
        for tag in found.tags:
            builder.add_edge(source, builder.add_node(f"tag:{tag}", tag, "tag"), "TAGGED")
        for mention in found.mentions:
            builder.add_edge(source, builder.add_node(f"mention:{mention}", mention, "mention"), "MENTIONS")
        for entity in found.entities:
            builder.add_edge(source, builder.add_entity(entity.kind, entity.label, entity.attributes), "REFERENCES_ENTITY")
        for triple in found.triples:
            subject = builder.add_entity_ref(triple.subject)
            obj = builder.add_entity_ref(triple.object)
            builder.add_edge(source, subject, "REFERENCES_ENTITY")
            builder.add_edge(source, obj, "REFERENCES_ENTITY")
            builder.add_edge(subject, obj, triple.predicate, note_id=note.id)
        for target in found.links:
            target_id = resolve_note(target)
            if target_id != source:
                builder.add_edge(source, target_id, "WIKILINK")
        for link in found.crosslinks:
            target_id = resolve_note(link.note_id)
            if target_id != source:
                builder.add_edge(source, target_id, "CROSSLINK", label=link.label)

    graph = ConnectionGraph(nodes=list(builder.nodes.values()), edges=builder.edges)
    LOGGER.info(
        "Built connection graph with %s nodes and %s edges from %s notes",
        len(graph.nodes),
        len(graph.edges),
        len(notes_list),
    )
    return graph


def graph_to_dict(graph: ConnectionGraph) -> Dict[str, object]:
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "nodes": [
            {"id": node.node_id, "label": node.label, "type": node.node_type, **node.properties}
            for node in graph.nodes
        ],
        "edges": [
            {"source": edge.source_id, "target": edge.target_id, "type": edge.edge_type, **edge.properties}
            for edge in graph.edges
        ],
    }


def write_graph_snapshot(graph: ConnectionGraph, path: str | Path) -> None:
    if not path:
        return
    write_json(path, graph_to_dict(graph))
    LOGGER.info("Saved graph snapshot to %s", path)
