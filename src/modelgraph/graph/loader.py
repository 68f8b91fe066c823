"""Load path — rebuild a model from the nodes and edges in Neo4j.

Nodes are fetched per class label (concurrently), rebuilt as instances,
reduced to one instance per identity (the most specific class wins), then
every reference type is queried and linked back into memory.  Edges that
reach nodes outside the loaded classes still yield best-effort instances
instead of failing the load.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from neo4j import AsyncDriver

from modelgraph.config import LoadConfig
from modelgraph.config import StorageConfig
from modelgraph.errors import MetamodelError
from modelgraph.graph.serialization import ad_hoc_class
from modelgraph.graph.serialization import deserialize_element
from modelgraph.graph.serialization import quote_name
from modelgraph.graph.tasks import gather_or_cancel
from modelgraph.metamodel.classes import Class
from modelgraph.metamodel.classes import Reference
from modelgraph.metamodel.element import Element
from modelgraph.metamodel.identity import element_id
from modelgraph.metamodel.model import Model
from modelgraph.observability import increment_counter

logger = logging.getLogger(__name__)

ElementIndex = dict[str, Element]


def classes_of(meta_model: Model) -> list[Class]:
    """Every class declared by *meta_model*, in declaration order."""
    return [cls for group in meta_model.classes.values() for cls in group]


def _replaces(candidate: Element, current: Element) -> bool:
    # Keep the current reconstruction only if it already specialises the candidate
    return not current.conforms_to().is_a(candidate.conforms_to())


def filter_class_hierarchy(elements: Iterable[Element]) -> list[Element]:
    """Keep one instance per identity, built from the most specific class.

    A node labelled with several loaded classes comes back once per class.
    A later reconstruction replaces the kept one unless the kept one's
    class is the same as, or a subclass of, the later one's class.
    """
    kept: ElementIndex = {}
    for element in elements:
        key = str(element_id(element))
        current = kept.get(key)
        if current is None or _replaces(element, current):
            kept[key] = element
    return list(kept.values())


def most_specific_class(
    default: Class | None,
    labels: Iterable[str] | None,
    known: Iterable[Class],
) -> Class | None:
    """Pick the deepest known class whose whole chain appears in *labels*."""
    if labels is None:
        return default
    label_set = set(labels)
    candidates = [
        cls
        for cls in known
        if (default is None or cls.is_a(default))
        and all(c.name in label_set for c in cls.inheritance_chain())
    ]
    if not candidates:
        return default
    return max(candidates, key=lambda cls: len(cls.inheritance_chain()))


class ModelLoader:
    """Reads instances of a meta-model's classes back from Neo4j."""

    def __init__(
        self,
        driver: AsyncDriver,
        *,
        store_id: str,
        storage: StorageConfig | None = None,
        config: LoadConfig | None = None,
        database: str | None = None,
    ) -> None:
        self._driver = driver
        self._store_id = store_id
        self._storage = storage or StorageConfig()
        self._config = config or LoadConfig()
        self._database = database

    async def load_model(self, meta_model: Model) -> Model:
        """Return a new model over *meta_model* holding every stored instance."""
        classes = classes_of(meta_model)
        batches = await gather_or_cancel(self.load_elements(cls) for cls in classes)
        survivors = filter_class_hierarchy(e for batch in batches for e in batch)
        index: ElementIndex = {str(element_id(e)): e for e in survivors}
        await self.refill_references(classes, index)
        logger.info(
            "Loaded %d elements over %d classes of %r",
            len(index),
            len(classes),
            meta_model.name,
        )
        return Model(self._config.model_name, meta_model, list(index.values()))

    # ----- Nodes -----

    async def load_elements(self, cls: Class) -> list[Element]:
        """Rebuild every node carrying the label of *cls* as an instance of it."""
        labels = f"{quote_name(cls.name)}:{quote_name(self._storage.marker_label)}"
        query = f"MATCH (n:{labels}) RETURN properties(n) AS props"
        async with self._driver.session(database=self._database) as session:
            result = await session.run(query)
            records = [record.data() async for record in result]
        return [self._rebuild(cls, record["props"]) for record in records]

    def _rebuild(self, cls: Class, props: dict) -> Element:
        return deserialize_element(cls, props, self._storage, self._store_id)

    # ----- References -----

    async def refill_references(self, classes: list[Class], index: ElementIndex) -> None:
        """Query each reference type once and link the loaded instances."""
        visited: set[tuple[str, str]] = set()
        jobs = []
        for cls in classes:
            for reference in cls.all_references().values():
                primary = reference.primary()
                key = (primary.owner.name, primary.name)
                if key in visited:
                    continue
                visited.add(key)
                opposite = primary.opposite_reference()
                if opposite is not None:
                    visited.add((opposite.owner.name, opposite.name))
                jobs.append(self.refill_reference(primary, index, classes))
        await gather_or_cancel(jobs)

    async def refill_reference(
        self,
        reference: Reference,
        index: ElementIndex,
        known: list[Class],
    ) -> None:
        source_label = quote_name(reference.owner.name)
        target_label = quote_name(
            reference.type.name
            if reference.type is not None
            else self._storage.marker_label
        )
        query = (
            f"MATCH (s:{source_label})-[a:{quote_name(reference.name)}]->(t:{target_label}) "
            "RETURN properties(s) AS s_props, labels(s) AS s_labels, "
            "properties(t) AS t_props, labels(t) AS t_labels, "
            "properties(a) AS a_props"
        )
        async with self._driver.session(database=self._database) as session:
            result = await session.run(query)
            records = [record.data() async for record in result]
        for record in records:
            self._resolve_reference(reference, record, index, known)

    def _resolve_reference(
        self,
        reference: Reference,
        record: dict,
        index: ElementIndex,
        known: list[Class],
    ) -> None:
        source = self._resolve_element(
            reference.owner, record["s_props"], record["s_labels"], index, known
        )
        target = self._resolve_element(
            reference.type, record["t_props"], record["t_labels"], index, known
        )
        associated = None
        if record["a_props"]:
            associated = self._resolve_element(
                reference.associated, record["a_props"], None, index, known
            )
        try:
            source.add_reference(reference.name, target, associated)
        except MetamodelError as exc:
            increment_counter("load.skipped_edge")
            logger.warning(
                "Skipping %s edge %s -> %s: %s",
                reference.name,
                element_id(source),
                element_id(target),
                exc,
            )

    def _resolve_element(
        self,
        default: Class | None,
        props: dict,
        labels: list[str] | None,
        index: ElementIndex,
        known: list[Class],
    ) -> Element:
        """Indexed instance for the node, or a freshly materialized one."""
        key = props.get(self._storage.id_property)
        if key is not None and str(key) in index:
            return index[str(key)]
        cls = most_specific_class(default, labels, known)
        if cls is None:
            cls = ad_hoc_class(labels or (), props, self._storage)
        element = self._rebuild(cls, props)
        if key is not None:
            index[str(key)] = element
        logger.debug("Materialized %s %s outside the class queries", cls.name, key)
        return element
