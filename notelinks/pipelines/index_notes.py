"""Batch pipeline: load a persisted workspace, extract connections, export the graph."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from ..analytics.metrics import compute_graph_metrics
from ..data.models import ConnectionGraph, Connections
from ..graph.export import build_connection_graph, write_graph_snapshot
from ..graph.neo4j_loader import Neo4jConfig, persist_graph
from ..store.workspace import NotesWorkspace
from ..syntax.connections import extract_connections
from ..utils.config import DEFAULT_CONFIG_PATH, load_config
from ..utils.io import write_json, write_jsonl
from ..utils.logging import get_logger, set_log_level

LOGGER = get_logger(__name__)


def run_indexing(config_path: str | Path = DEFAULT_CONFIG_PATH) -> ConnectionGraph:
    config = load_config(config_path)
    return index_workspace(NotesWorkspace.from_config(config), config)


def index_workspace(workspace: NotesWorkspace, config: Dict[str, Any]) -> ConnectionGraph:
    level = config.get("logging", {}).get("level")
    if level:
        set_log_level(level)

    notes = workspace.tree.notes()
    if not notes:
        LOGGER.warning("Workspace holds no notes; nothing to index")
        return ConnectionGraph()

    connections: Dict[str, Connections] = {note.id: extract_connections(note.content) for note in notes}
    LOGGER.info("Extracted connections for %s notes", len(connections))

    analytics_cfg = config.get("analytics", {})
    connections_path = analytics_cfg.get("connections_path")
    if connections_path:
        write_jsonl(
            connections_path,
            (
                {
                    "note_id": note.id,
                    "title": note.title,
                    **connections[note.id].to_dict(),
                    "inbound_crosslinks": [
                        link.to_dict() for link in workspace.get_backlinks_for_note(note.id)
                    ],
                }
                for note in notes
            ),
        )

    graph = build_connection_graph(notes, connections)

    snapshot_path = analytics_cfg.get("graph_snapshot_path")
    if snapshot_path:
        write_graph_snapshot(graph, snapshot_path)

    metrics_path = analytics_cfg.get("metrics_path")
    if metrics_path:
        metrics_payload = compute_graph_metrics(graph)
        metadata = metrics_payload["metadata"]
        if snapshot_path and isinstance(metadata, dict):
            metadata["graph_snapshot_path"] = str(snapshot_path)
        write_json(metrics_path, metrics_payload)
        LOGGER.info("Connection metrics saved to %s", metrics_path)

    neo4j_cfg = config.get("graph", {}).get("neo4j")
    if neo4j_cfg:
        try:
            persist_graph(
                Neo4jConfig(
                    uri=neo4j_cfg["uri"],
                    user=neo4j_cfg["user"],
                    password=neo4j_cfg["password"],
                ),
                graph,
            )
        except Exception as exc:  # pragma: no cover - requires live Neo4j service
            LOGGER.warning(
                "Failed to persist graph to Neo4j (%s). Continuing without database sync.",
                exc,
            )
    return graph
