import json

import pytest

from graph_fixtures import sample_notes

from notelinks.graph.export import build_connection_graph
from notelinks.graph.neo4j_loader import Neo4jConfig, cypher_identifier, persist_graph


@pytest.mark.parametrize(
    "value, expected",
    [
        ("wrote", "wrote"),
        ("works for", "works_for"),
        ("2nd_author", "_2nd_author"),
        ("!!!", "RELATED_TO"),
    ],
)
def test_cypher_identifier(value, expected):
    assert cypher_identifier(value) == expected


class RecordingTransaction:
    def __init__(self, queries):
        self.queries = queries

    def run(self, query, **params):
        self.queries.append((query, params))


class RecordingSession:
    def __init__(self, queries):
        self.queries = queries

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute_write(self, work, *args):
        return work(RecordingTransaction(self.queries), *args)


class RecordingDriver:
    def __init__(self):
        self.queries = []
        self.closed = False

    def session(self):
        return RecordingSession(self.queries)

    def close(self):
        self.closed = True


def test_persist_graph_merges_nodes_then_edges(monkeypatch):
    neo4j = pytest.importorskip("neo4j")
    driver = RecordingDriver()
    monkeypatch.setattr(neo4j.GraphDatabase, "driver", lambda uri, auth: driver)
    graph = build_connection_graph(sample_notes())

    persist_graph(Neo4jConfig(uri="bolt://localhost:7687", user="neo4j", password="secret"), graph)

    assert driver.closed
    node_queries = [query for query in driver.queries if query[0].startswith("MERGE (n:")]
    edge_queries = [query for query in driver.queries if query[0].startswith("MATCH")]
    assert len(node_queries) == len(graph.nodes)
    assert len(edge_queries) == len(graph.edges)
    assert driver.queries.index(node_queries[-1]) < driver.queries.index(edge_queries[0])
    assert any("Connection:Note_Ref" in query for query, _ in node_queries)
    predicate = next(params for query, params in edge_queries if "[rel:wrote]" in query)
    assert json.loads(predicate["properties"]) == {"note_id": "a"}
