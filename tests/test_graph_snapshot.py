import json

from graph_fixtures import sample_notes

from notelinks.graph.export import build_connection_graph, write_graph_snapshot


def test_write_graph_snapshot(tmp_path):
    graph = build_connection_graph(sample_notes())
    output_path = tmp_path / "nested" / "snapshot.json"

    write_graph_snapshot(graph, output_path)

    assert output_path.exists()
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert "generated_at" in payload
    node_ids = {node["id"] for node in payload["nodes"]}
    assert {"note:a", "note:b", "tag:ml"} <= node_ids
    assert any(edge["type"] == "wrote" and edge["note_id"] == "a" for edge in payload["edges"])
