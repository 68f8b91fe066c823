"""Models — named, ordered collections of modelling elements."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from collections.abc import Iterator

from modelgraph.errors import MetamodelError
from modelgraph.metamodel.classes import Class
from modelgraph.metamodel.element import Element
from modelgraph.metamodel.element import conforms
from modelgraph.metamodel.enums import Enum
from modelgraph.metamodel.identity import ElementMeta

ModellingElement = Element | Class | Enum


def _key(obj: ModellingElement) -> str:
    if isinstance(obj, Element):
        return obj.conforms_to().name
    return obj.name


def _reachable(element: Element) -> Iterator[Element]:
    for name in element.conforms_to().all_references():
        for link in element.get_associated(name):
            yield link.target
            if link.associated is not None:
                yield link.associated


class Model:
    """A named collection of elements, classes and enums.

    ``reference_model`` is the model this one conforms to (its meta-model);
    the chain is followed when a model is saved so class definitions travel
    with instance data.
    """

    def __init__(
        self,
        name: str = "",
        reference_model: Model | None = None,
        elements: ModellingElement | Iterable[ModellingElement] = (),
        transitive: bool = False,
    ) -> None:
        self.name = name
        self.reference_model = reference_model
        self.modelling_elements: dict[str, list[ModellingElement]] = {}
        self._ordered: list[ModellingElement] = []
        self._members: set[ModellingElement] = set()
        self._meta = ElementMeta()
        if isinstance(elements, (Element, Class, Enum)):
            elements = [elements]
        for element in elements:
            self.add_element(element, transitive=transitive)

    def add_element(self, obj: ModellingElement, transitive: bool = False) -> None:
        """Add *obj*; in transitive mode also everything it references."""
        if not isinstance(obj, (Element, Class, Enum)):
            msg = f"Cannot add {obj!r} to model {self.name!r}"
            raise MetamodelError(msg)
        pending: deque[ModellingElement] = deque([obj])
        while pending:
            current = pending.popleft()
            if current in self._members:
                continue
            self._members.add(current)
            self._ordered.append(current)
            self.modelling_elements.setdefault(_key(current), []).append(current)
            if transitive and isinstance(current, Element):
                pending.extend(_reachable(current))

    def elements(self) -> list[ModellingElement]:
        """Every modelling element, in insertion order."""
        return list(self._ordered)

    @property
    def classes(self) -> dict[str, list[Class]]:
        result: dict[str, list[Class]] = {}
        for obj in self._ordered:
            if isinstance(obj, Class):
                result.setdefault(obj.name, []).append(obj)
        return result

    @property
    def enums(self) -> dict[str, list[Enum]]:
        result: dict[str, list[Enum]] = {}
        for obj in self._ordered:
            if isinstance(obj, Enum):
                result.setdefault(obj.name, []).append(obj)
        return result

    def elements_of(self, cls: Class) -> list[Element]:
        """Instances of *cls* or any of its subclasses."""
        return [obj for obj in self._ordered if conforms(obj, cls)]

    def __contains__(self, obj: object) -> bool:
        return obj in self._members

    def __len__(self) -> int:
        return len(self._ordered)

    def __repr__(self) -> str:
        return f"Model({self.name!r}, {len(self._ordered)} elements)"
