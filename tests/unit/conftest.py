"""Unit test fixtures — an in-memory stand-in for the async Neo4j driver.

``InMemoryGraph`` understands exactly the Cypher statements issued by
``modelgraph.graph`` (matched by shape, not parsed in general) and keeps
nodes and relationships in dicts.  The identity uniqueness constraint is
always enforced, raising ``ConstraintError`` like the real server.
"""

from __future__ import annotations

import asyncio
import itertools
import re
from collections.abc import Callable

import pytest
from neo4j.exceptions import ConstraintError

from modelgraph.config import ConnectionConfig
from modelgraph.config import StorageConfig
from modelgraph.connector import Connector

_NAME_RE = re.compile(r"`([^`]+)`")
_REL_CREATE_RE = re.compile(r"CREATE \(s\)-\[r:`([^`]+)`")
_REL_MATCH_RE = re.compile(
    r"^MATCH \(s:`([^`]+)`\)-\[a:`([^`]+)`\]->\(t:`([^`]+)`\)"
)

ID_PROPERTY = StorageConfig().id_property


class FakeRecord(dict):
    def data(self) -> dict:
        return dict(self)


class FakeResult:
    def __init__(self, records: list[FakeRecord]) -> None:
        self._records = records

    async def single(self) -> FakeRecord | None:
        return self._records[0] if self._records else None

    async def consume(self) -> None:
        return None

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for record in self._records:
            yield record


class InMemoryGraph:
    def __init__(self) -> None:
        self.nodes: dict[str, tuple[list[str], dict]] = {}
        self.rels: list[tuple[str, str, str, dict]] = []
        self.queries: list[str] = []
        self.fail_on: Callable[[str, dict], Exception | None] | None = None
        self.delay: Callable[[str, dict], float] | None = None
        self._ids = itertools.count(1)

    # ----- Inspection helpers -----

    def nodes_with(self, label: str) -> list[dict]:
        return [props for labels, props in self.nodes.values() if label in labels]

    def node_by_uid(self, uid: str) -> tuple[str, list[str], dict] | None:
        for node_id, (labels, props) in self.nodes.items():
            if props.get(ID_PROPERTY) == uid:
                return node_id, labels, props
        return None

    def rels_of_type(self, rel_type: str) -> list[tuple[str, str, str, dict]]:
        return [rel for rel in self.rels if rel[1] == rel_type]

    # ----- Execution -----

    def execute(self, query: str, params: dict) -> FakeResult:
        self.queries.append(query)
        if self.fail_on is not None:
            error = self.fail_on(query, params)
            if error is not None:
                raise error
        if query.startswith("CREATE CONSTRAINT"):
            return FakeResult([])
        if "DETACH DELETE" in query:
            return self._delete(params["uid"])
        if query.startswith("MERGE"):
            return self._merge(query, params)
        if query.startswith("CREATE (x:"):
            return self._create(query, params)
        if "CREATE (s)-[r:" in query:
            return self._relate(query, params)
        match = _REL_MATCH_RE.match(query)
        if match:
            return self._match_rels(*match.groups())
        if query.startswith("MATCH (n:"):
            labels = _NAME_RE.findall(query.split(")")[0])
            return FakeResult(
                [
                    FakeRecord(props=dict(props))
                    for node_labels, props in self.nodes.values()
                    if set(labels) <= set(node_labels)
                ]
            )
        raise AssertionError(f"Unexpected query: {query}")

    def _new_node(self, labels: list[str], props: dict) -> str:
        if self.node_by_uid(props[ID_PROPERTY]) is not None:
            raise ConstraintError("Node already exists with the same identity")
        node_id = f"4:fake:{next(self._ids)}"
        self.nodes[node_id] = (list(dict.fromkeys(labels)), dict(props))
        return node_id

    def _delete(self, uid: str) -> FakeResult:
        found = self.node_by_uid(uid)
        if found is not None:
            node_id = found[0]
            del self.nodes[node_id]
            self.rels = [r for r in self.rels if node_id not in (r[0], r[2])]
        return FakeResult([])

    def _merge(self, query: str, params: dict) -> FakeResult:
        labels = _NAME_RE.findall(query.split(" {")[0])
        found = self.node_by_uid(params["uid"])
        if found is None:
            node_id = self._new_node(labels, params["props"])
        else:
            node_id = found[0]
            self.nodes[node_id] = (
                list(dict.fromkeys([*found[1], *labels])),
                dict(params["props"]),
            )
        return FakeResult([FakeRecord(node_id=node_id)])

    def _create(self, query: str, params: dict) -> FakeResult:
        labels = _NAME_RE.findall(query.split(" $props")[0])
        node_id = self._new_node(labels, params["props"])
        return FakeResult([FakeRecord(node_id=node_id)])

    def _relate(self, query: str, params: dict) -> FakeResult:
        rel_type = _REL_CREATE_RE.search(query).group(1)
        source, target = params["source_id"], params["target_id"]
        if source not in self.nodes or target not in self.nodes:
            return FakeResult([])
        self.rels.append((source, rel_type, target, dict(params.get("associated", {}))))
        return FakeResult([FakeRecord(rel_type=rel_type)])

    def _match_rels(self, source_label: str, rel_type: str, target_label: str) -> FakeResult:
        records = []
        for source, kind, target, props in self.rels:
            s_labels, s_props = self.nodes[source]
            t_labels, t_props = self.nodes[target]
            if kind == rel_type and source_label in s_labels and target_label in t_labels:
                records.append(
                    FakeRecord(
                        s_props=dict(s_props),
                        s_labels=list(s_labels),
                        t_props=dict(t_props),
                        t_labels=list(t_labels),
                        a_props=dict(props),
                    )
                )
        return FakeResult(records)


class FakeSession:
    def __init__(self, graph: InMemoryGraph) -> None:
        self._graph = graph

    async def __aenter__(self) -> FakeSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def run(self, query: str, **params: object) -> FakeResult:
        if self._graph.delay is not None:
            wait = self._graph.delay(query, params)
            if wait:
                await asyncio.sleep(wait)
        return self._graph.execute(query, params)


class FakeDriver:
    def __init__(self, graph: InMemoryGraph) -> None:
        self.graph = graph
        self.closed = False

    def session(self, database: str | None = None) -> FakeSession:
        return FakeSession(self.graph)

    async def close(self) -> None:
        self.closed = True


STORE_URL = "bolt://fake:7687"


@pytest.fixture()
def graph() -> InMemoryGraph:
    return InMemoryGraph()


@pytest.fixture()
def fake_driver(graph) -> FakeDriver:
    return FakeDriver(graph)


@pytest.fixture()
def connector(fake_driver) -> Connector:
    return Connector(fake_driver, ConnectionConfig(url=STORE_URL))
