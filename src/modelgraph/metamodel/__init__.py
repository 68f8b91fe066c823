"""Metamodel domain — classes, elements, enums and models.

An explicit schema registry: each :class:`Class` lists its attribute and
reference descriptors and builds its own instances.
"""

from __future__ import annotations

from modelgraph.metamodel.classes import Attribute
from modelgraph.metamodel.classes import Class
from modelgraph.metamodel.classes import Reference
from modelgraph.metamodel.element import Association
from modelgraph.metamodel.element import Element
from modelgraph.metamodel.element import conforms
from modelgraph.metamodel.enums import Enum
from modelgraph.metamodel.identity import ElementMeta
from modelgraph.metamodel.identity import element_id
from modelgraph.metamodel.identity import generate_id
from modelgraph.metamodel.identity import meta_of
from modelgraph.metamodel.identity import set_element_id
from modelgraph.metamodel.model import Model
from modelgraph.metamodel.types import Any
from modelgraph.metamodel.types import Array
from modelgraph.metamodel.types import AttributeType
from modelgraph.metamodel.types import Boolean
from modelgraph.metamodel.types import Date
from modelgraph.metamodel.types import Integer
from modelgraph.metamodel.types import Negative
from modelgraph.metamodel.types import Number
from modelgraph.metamodel.types import Positive
from modelgraph.metamodel.types import Range
from modelgraph.metamodel.types import String

__all__ = [
    # Structure
    "Association",
    "Attribute",
    "Class",
    "Element",
    "Enum",
    "Model",
    "Reference",
    "conforms",
    # Identity
    "ElementMeta",
    "element_id",
    "generate_id",
    "meta_of",
    "set_element_id",
    # Attribute types
    "Any",
    "Array",
    "AttributeType",
    "Boolean",
    "Date",
    "Integer",
    "Negative",
    "Number",
    "Positive",
    "Range",
    "String",
]
