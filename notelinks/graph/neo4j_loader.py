"""Utility for writing the connection graph into Neo4j."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass

from ..data.models import ConnectionGraph, GraphEdge, GraphNode
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

_INVALID_LABEL_CHARS = re.compile(r"[^A-Za-z0-9_]")


@dataclass(slots=True)
class Neo4jConfig:
    uri: str
    user: str
    password: str


def cypher_identifier(value: str) -> str:
    """Turn a node type or predicate into a safe Cypher label / relationship type."""
    cleaned = _INVALID_LABEL_CHARS.sub("_", value).strip("_")
    if not cleaned:
        return "RELATED_TO"
    if cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


class Neo4jLoader:
    """Wrapper around the official Neo4j driver to persist the connection graph."""

    def __init__(self, config: Neo4jConfig):
        self.config = config
        try:
            from neo4j import GraphDatabase  # type: ignore[import-not-found]
        except ImportError as exc:  # pragma: no cover
            raise ImportError("neo4j must be installed to use the Neo4j loader") from exc
        self._driver = GraphDatabase.driver(
            config.uri,
            auth=(config.user, config.password),
        )

    def close(self) -> None:
        self._driver.close()

    def sync_graph(self, graph: ConnectionGraph) -> None:
        """Persist the supplied nodes and edges into the database."""
        with self._driver.session() as session:
            for node in graph.nodes:
                session.execute_write(self._merge_node, node)
            LOGGER.info("Persisted %s nodes", len(graph.nodes))
            for edge in graph.edges:
                session.execute_write(self._merge_edge, edge)
            LOGGER.info("Persisted %s edges", len(graph.edges))

    @staticmethod
    def _merge_node(tx, node: GraphNode) -> None:
        label_clause = ":".join(["Connection", cypher_identifier(node.node_type.title())])
        tx.run(
            f"MERGE (n:{label_clause} {{node_id: $node_id}}) "
            "SET n.label = $label, n.node_type = $node_type, n.properties = $properties",
            node_id=node.node_id,
            label=node.label,
            node_type=node.node_type,
            properties=json.dumps(node.properties, ensure_ascii=False, sort_keys=True),
        )

    @staticmethod
    def _merge_edge(tx, edge: GraphEdge) -> None:
        tx.run(
            "MATCH (source:Connection {node_id: $source_id}) "
            "MATCH (target:Connection {node_id: $target_id}) "
            f"MERGE (source)-[rel:{cypher_identifier(edge.edge_type)}]->(target) "
            "SET rel.properties = $properties",
            source_id=edge.source_id,
            target_id=edge.target_id,
            properties=json.dumps(edge.properties, ensure_ascii=False, sort_keys=True),
        )


def persist_graph(config: Neo4jConfig, graph: ConnectionGraph) -> None:
    loader = Neo4jLoader(config)
    try:
        loader.sync_graph(graph)
    finally:
        loader.close()
