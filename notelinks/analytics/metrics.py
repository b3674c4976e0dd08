"""Aggregation helpers producing summary metrics for a connection graph."""
from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timezone
from statistics import median
from typing import DefaultDict, Dict, List, Set

from ..data.models import ConnectionGraph

STRUCTURAL_EDGE_TYPES = {"TAGGED", "MENTIONS", "REFERENCES_ENTITY", "WIKILINK", "CROSSLINK"}


def compute_graph_metrics(graph: ConnectionGraph, top_n: int = 10) -> Dict[str, object]:
    """Compute aggregate metrics for a :class:`ConnectionGraph`.

    The returned dictionary is JSON-serialisable.
    """
    node_types = {node.node_id: node.node_type for node in graph.nodes}
    labels = {node.node_id: node.label for node in graph.nodes}
    note_ids = [node.node_id for node in graph.nodes if node.node_type == "note"]

    metrics: Dict[str, object] = {
        "metadata": {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "num_nodes": len(graph.nodes),
            "num_edges": len(graph.edges),
            "num_notes": len(note_ids),
        },
        "node_type_counts": dict(Counter(node_types.values())),
        "edge_type_counts": dict(Counter(edge.edge_type for edge in graph.edges)),
    }

    tag_counter: Counter = Counter()
    entity_kind_counter: Counter = Counter()
    predicate_counter: Counter = Counter()
    inbound_links: Counter = Counter()
    unresolved_targets: Set[str] = set()
    adjacency: DefaultDict[str, Set[str]] = defaultdict(set)
    for node_id in node_types:
        adjacency.setdefault(node_id, set())

    for edge in graph.edges:
        adjacency[edge.source_id].add(edge.target_id)
        adjacency[edge.target_id].add(edge.source_id)
        target_type = node_types.get(edge.target_id)
        if edge.edge_type == "TAGGED":
            tag_counter[labels.get(edge.target_id, edge.target_id)] += 1
        elif edge.edge_type not in STRUCTURAL_EDGE_TYPES:
            predicate_counter[edge.edge_type] += 1
        if edge.edge_type in {"WIKILINK", "CROSSLINK"}:
            if target_type == "note":
                inbound_links[edge.target_id] += 1
            elif target_type == "note_ref":
                unresolved_targets.add(labels.get(edge.target_id, edge.target_id))

    for node in graph.nodes:
        if node.node_type == "entity":
            entity_kind_counter[node.properties.get("kind", "")] += 1

    top_linked_notes: List[Dict[str, object]] = [
        {"note_id": node_id.split(":", 1)[1], "title": labels.get(node_id, ""), "inbound_links": count}
        for node_id, count in inbound_links.most_common(top_n)
    ]

    # A note is isolated when nothing links to it and it carries no markers.
    isolated_notes = sorted(labels[node_id] for node_id in note_ids if not adjacency[node_id])

    num_nodes = len(graph.nodes)
    density = len(graph.edges) / (num_nodes * (num_nodes - 1)) if num_nodes > 1 else 0.0
    degree_values = [len(neighbours) for neighbours in adjacency.values()]

    components = _connected_components(adjacency)

    metrics.update(
        {
            "tag_counts": dict(tag_counter.most_common()),
            "entity_kind_counts": dict(entity_kind_counter.most_common()),
            "predicate_counts": dict(predicate_counter.most_common()),
            "top_linked_notes": top_linked_notes,
            "unresolved_link_targets": sorted(unresolved_targets),
            "isolated_notes": isolated_notes,
            "graph_summary": {
                "graph_density": density,
                "average_degree": sum(degree_values) / num_nodes if num_nodes else 0.0,
                "max_degree": max(degree_values, default=0),
                "median_degree": median(degree_values) if degree_values else 0.0,
                "connected_components": len(components),
                "largest_component_size": max((len(component) for component in components), default=0),
            },
        }
    )
    return metrics


def _connected_components(adjacency: Dict[str, Set[str]]) -> List[Set[str]]:
    components: List[Set[str]] = []
    visited: Set[str] = set()
    for node in adjacency:
        if node in visited:
            continue
        stack = [node]
        component: Set[str] = set()
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            component.add(current)
            stack.extend(neighbour for neighbour in adjacency[current] if neighbour not in visited)
        components.append(component)
    return components
