"""Save path — elements become nodes, references become relationships.

A :class:`ModelWriter` holds the state of one save operation: the
reification cache, the node id assigned to every written element, and the
writes still in flight.  All elements are written (concurrently) before
any relationship, since edges address their endpoints by node id.
"""

from __future__ import annotations

import asyncio
import logging

from neo4j import AsyncDriver
from neo4j.exceptions import ConstraintError
from neo4j.exceptions import DriverError
from neo4j.exceptions import Neo4jError

from modelgraph.config import StorageConfig
from modelgraph.errors import ElementPersistenceError
from modelgraph.errors import IdentityRetriesExhausted
from modelgraph.errors import RelationshipPersistenceError
from modelgraph.graph.serialization import label_expression
from modelgraph.graph.serialization import node_labels
from modelgraph.graph.serialization import quote_name
from modelgraph.graph.serialization import serialize_element
from modelgraph.graph.tasks import cancel_all
from modelgraph.graph.tasks import gather_or_cancel
from modelgraph.metamodel.classes import Reference
from modelgraph.metamodel.element import Association
from modelgraph.metamodel.element import Element
from modelgraph.metamodel.identity import generate_id
from modelgraph.metamodel.identity import is_stored_in
from modelgraph.metamodel.identity import mark_stored
from modelgraph.metamodel.identity import meta_of
from modelgraph.metamodel.model import Model
from modelgraph.observability import increment_counter
from modelgraph.reify import META_METAMODEL
from modelgraph.reify import ReificationCache
from modelgraph.reify import canonical
from modelgraph.reify import reify_meta_element

logger = logging.getLogger(__name__)

_STORE_ERRORS = (Neo4jError, DriverError)


def gather_elements(model: object) -> list[object]:
    """Elements of *model*, the model itself, then the same for its meta-model chain."""
    result: list[object] = []
    seen: set[Model] = set()
    current = model
    while isinstance(current, Model) and current not in seen:
        seen.add(current)
        result.extend(current.elements())
        result.append(current)
        current = current.reference_model
    return result


def persisted_references(element: Element) -> list[Reference]:
    """References stored as edges: the reverse side of an opposite pair is skipped."""
    return [
        reference
        for reference in element.conforms_to().all_references().values()
        if not reference.derived
    ]


class ModelWriter:
    """Writes one model (and its meta-model chain) to Neo4j."""

    def __init__(
        self,
        driver: AsyncDriver,
        *,
        store_id: str,
        storage: StorageConfig | None = None,
        database: str | None = None,
    ) -> None:
        self._driver = driver
        self._store_id = store_id
        self._storage = storage or StorageConfig()
        self._database = database
        self._reified: ReificationCache = {}
        self._node_ids: dict[Element, str] = {}
        self._pending: dict[Element, asyncio.Future] = {}

    @property
    def reified(self) -> ReificationCache:
        return self._reified

    @property
    def node_ids(self) -> dict[Element, str]:
        return dict(self._node_ids)

    # ----- Orchestration -----

    async def save_model(self, model: Model, own_types: bool = False) -> dict[Element, str]:
        """Persist *model* and its meta-model chain. Return element -> node id."""
        elements = self.prepare(model, own_types=own_types)
        try:
            await self.save_elements(elements)
            await self.save_relationships(elements)
        except BaseException:
            # Writes started on demand may outlive the failed fan-out
            await cancel_all(self._pending.values())
            raise
        return self.node_ids

    def prepare(self, model: Model, *, own_types: bool = False) -> list[Element]:
        """Gather and reify everything to store, without duplicates.

        With *own_types*, the reification vocabulary is stored as well so
        the graph describes its own meta-level.
        """
        raw = gather_elements(model)
        if own_types:
            raw.extend(gather_elements(META_METAMODEL))
        elements: list[Element] = []
        seen: set[object] = set()
        for obj in raw:
            for element in reify_meta_element(obj, self._reified):
                if element not in seen and isinstance(element, Element):
                    seen.add(element)
                    elements.append(element)
        return elements

    def canonical(self, obj: object) -> Element:
        return canonical(obj, self._reified)

    # ----- Elements -----

    async def save_elements(self, elements: list[Element]) -> None:
        await gather_or_cancel(self.ensure_saved(e) for e in elements)

    async def ensure_saved(self, obj: object) -> str:
        """Fetch-or-save: the node id of *obj*, writing it at most once."""
        element = self.canonical(obj)
        node_id = self._node_ids.get(element)
        if node_id is not None:
            return node_id
        future = self._pending.get(element)
        if future is None:
            future = asyncio.ensure_future(self.save_element(element))
            self._pending[element] = future
        _, node_id = await future
        return node_id

    async def save_element(self, obj: object) -> tuple[Element, str]:
        """Write one element; replace its node if this store already holds it."""
        element = self.canonical(obj)
        props = serialize_element(element, self._storage)
        labels = label_expression(node_labels(element, self._storage))
        try:
            if is_stored_in(element, self._store_id):
                node_id = await self._replace_node(labels, props)
            else:
                node_id = await self._create_node(element, labels, props)
        except IdentityRetriesExhausted:
            raise
        except _STORE_ERRORS as exc:
            raise ElementPersistenceError(props) from exc
        mark_stored(element, self._store_id)
        self._node_ids[element] = node_id
        return element, node_id

    async def _replace_node(self, labels: str, props: dict) -> str:
        marker = quote_name(self._storage.marker_label)
        key = quote_name(self._storage.id_property)
        uid = props[self._storage.id_property]
        clean = f"MATCH (x:{marker} {{{key}: $uid}}) DETACH DELETE x"
        update = (
            f"MERGE (x:{labels} {{{key}: $uid}}) "
            "SET x = $props RETURN elementId(x) AS node_id"
        )
        async with self._driver.session(database=self._database) as session:
            result = await session.run(clean, uid=uid)
            await result.consume()
            result = await session.run(update, uid=uid, props=props)
            record = await result.single()
            return record["node_id"]

    async def _create_node(self, element: Element, labels: str, props: dict) -> str:
        query = f"CREATE (x:{labels} $props) RETURN elementId(x) AS node_id"
        retries = 0
        while True:
            try:
                async with self._driver.session(database=self._database) as session:
                    result = await session.run(query, props=props)
                    record = await result.single()
                    return record["node_id"]
            except ConstraintError as exc:
                retries += 1
                if retries > self._storage.max_identity_retries:
                    raise IdentityRetriesExhausted(props) from exc
                new_id = generate_id()
                logger.warning(
                    "Identity %s already stored by another element; retrying as %s",
                    props[self._storage.id_property],
                    new_id,
                )
                increment_counter("save.identity_collision")
                meta_of(element).uuid = new_id
                props[self._storage.id_property] = str(new_id)

    # ----- Relationships -----

    async def save_relationships(self, elements: list[Element]) -> None:
        writes = [
            self.save_relationship(element, reference, link)
            for element in elements
            for reference in persisted_references(element)
            for link in element.get_associated(reference.name)
        ]
        await gather_or_cancel(writes)

    async def _edge_properties(self, associated: Element) -> dict:
        await self.ensure_saved(associated)
        return serialize_element(self.canonical(associated), self._storage)

    async def save_relationship(
        self,
        source: Element,
        reference: Reference,
        link: Association,
    ) -> None:
        """Create one edge ``source -[reference]-> link.target``."""
        source_id = await self.ensure_saved(source)
        target_id = await self.ensure_saved(link.target)
        props = None
        if link.associated is not None:
            props = await self._edge_properties(link.associated)

        rel_type = quote_name(reference.name)
        rel_props = " $associated" if props is not None else ""
        query = (
            "MATCH (s) WHERE elementId(s) = $source_id "
            "MATCH (t) WHERE elementId(t) = $target_id "
            f"CREATE (s)-[r:{rel_type}{rel_props}]->(t) "
            "RETURN type(r) AS rel_type"
        )
        params: dict = {"source_id": source_id, "target_id": target_id}
        if props is not None:
            params["associated"] = props
        try:
            async with self._driver.session(database=self._database) as session:
                result = await session.run(query, **params)
                record = await result.single()
        except _STORE_ERRORS as exc:
            raise RelationshipPersistenceError(
                source_id, reference.name, target_id
            ) from exc
        if record is None:
            raise RelationshipPersistenceError(source_id, reference.name, target_id)
        logger.debug("OK reference: %s - %s - %s", source_id, reference.name, target_id)
