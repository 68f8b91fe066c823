"""Element <-> Neo4j property map conversion and Cypher name quoting."""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable

from neo4j import time as neo4j_time

from modelgraph.config import StorageConfig
from modelgraph.metamodel.classes import Class
from modelgraph.metamodel.element import Element
from modelgraph.metamodel.identity import element_id
from modelgraph.metamodel.identity import mark_stored
from modelgraph.metamodel.identity import set_element_id
from modelgraph.metamodel.types import Any

# ---------------------------------------------------------------------------
# Query safety guards
# ---------------------------------------------------------------------------

_NAME_RE = re.compile(r"^[^\x00`]+$")


def quote_name(name: str) -> str:
    """Backtick-quote a label, relationship type or property key."""
    if not name or not _NAME_RE.match(name):
        msg = f"Invalid graph name: {name!r}"
        raise ValueError(msg)
    return f"`{name}`"


def label_expression(labels: Iterable[str]) -> str:
    return ":".join(quote_name(label) for label in labels)


# ---------------------------------------------------------------------------
# Save direction
# ---------------------------------------------------------------------------


def node_labels(element: Element, storage: StorageConfig) -> list[str]:
    """Inheritance chain class names plus the marker label."""
    labels = [cls.name for cls in element.conforms_to().inheritance_chain()]
    labels.append(storage.marker_label)
    return labels


def _python_to_neo4j(value: object) -> object:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, tuple):
        value = list(value)
    if isinstance(value, list):
        return [_python_to_neo4j(v) for v in value]
    return value


def serialize_element(element: Element, storage: StorageConfig) -> dict:
    """Flat property map: the stable identity plus every defined attribute."""
    props: dict = {storage.id_property: str(element_id(element))}
    for name, value in element.attribute_values().items():
        props[name] = _python_to_neo4j(value)
    return props


# ---------------------------------------------------------------------------
# Load direction
# ---------------------------------------------------------------------------


def _neo4j_to_python(value: object) -> object:
    """Convert Neo4j temporal types to Python stdlib equivalents."""
    if isinstance(value, (neo4j_time.DateTime, neo4j_time.Date, neo4j_time.Time)):
        return value.to_native()
    if isinstance(value, neo4j_time.Duration):
        return value.hours_minutes_seconds_nanoseconds
    if isinstance(value, list):
        return [_neo4j_to_python(v) for v in value]
    return value


def convert_props(props: dict) -> dict:
    """Convert all Neo4j types in a property dict to Python types."""
    return {k: _neo4j_to_python(v) for k, v in props.items()}


def deserialize_element(
    cls: Class,
    props: dict,
    storage: StorageConfig,
    store_id: str,
) -> Element:
    """Rebuild an instance of *cls* from node properties (attributes only)."""
    values = convert_props(props)
    element = cls.new_instance()
    for name in cls.all_attributes():
        if name in values:
            element.restore_attribute(name, values[name])
    key = values.get(storage.id_property)
    if key is not None:
        set_element_id(element, str(key))
    mark_stored(element, store_id)
    return element


def ad_hoc_class(labels: Iterable[str], props: dict, storage: StorageConfig) -> Class:
    """A throwaway class able to hold whatever properties a node carries.

    Used when no known class matches a node reached through an edge.  The
    class is named after the first label in the order given (the order
    ``labels(n)`` returns them); the remaining labels become a chain of
    empty ancestors, so saving the instance again keeps its full label set.
    """
    names = [label for label in labels if label != storage.marker_label]
    if not names:
        names = ["Unknown"]
    parent: Class | None = None
    for name in reversed(names[1:]):
        parent = Class(name, parent or ())
    cls = Class(names[0], parent or ())
    for key in props:
        if key != storage.id_property:
            cls.add_attribute(key, Any)
    return cls
