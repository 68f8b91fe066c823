"""Model elements — instances of a :class:`~modelgraph.metamodel.classes.Class`.

Attributes and references declared by the class (and its ancestors) are
exposed as plain Python attributes::

    person = Person(name="Ada")
    person.name            # "Ada"
    person.knows           # [] (list of referenced elements)
    person.add_reference("knows", other)

Reference links remember an optional *associated* element, which carries
the data attached to the edge itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import NamedTuple

from modelgraph.errors import CardinalityError
from modelgraph.errors import NonConformingTarget
from modelgraph.errors import UnknownFeature
from modelgraph.metamodel.identity import ElementMeta

if TYPE_CHECKING:
    from modelgraph.metamodel.classes import Class
    from modelgraph.metamodel.classes import Reference


class Association(NamedTuple):
    """One reference link: the target and its optional edge object."""

    target: Element
    associated: Element | None = None


class Element:
    """An instance of a class, with validated attributes and typed references."""

    def __init__(self, cls: Class, **values: object) -> None:
        object.__setattr__(self, "_class", cls)
        object.__setattr__(self, "_meta", ElementMeta())
        object.__setattr__(self, "_attributes", {})
        object.__setattr__(self, "_links", {})
        for name, value in values.items():
            self.set(name, value)

    def conforms_to(self) -> Class:
        return self._class

    # ----- Generic access -----

    def get(self, name: str) -> object:
        cls = self._class
        if name in cls.all_attributes():
            return self._attributes.get(name)
        if name in cls.all_references():
            return [link.target for link in self._links.get(name, [])]
        raise UnknownFeature(f"{cls.name} has no feature {name!r}")

    def set(self, name: str, value: object) -> None:
        cls = self._class
        attribute = cls.all_attributes().get(name)
        if attribute is not None:
            if value is None:
                self._attributes.pop(name, None)
            else:
                self._attributes[name] = attribute.type.validate(value, name)
            return
        if name in cls.all_references():
            self.clear_reference(name)
            for target in value or ():
                self.add_reference(name, target)
            return
        raise UnknownFeature(f"{cls.name} has no feature {name!r}")

    def __getattr__(self, name: str) -> object:
        # Only reached when regular lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __setattr__(self, name: str, value: object) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    # ----- Attributes -----

    def attribute_values(self) -> dict[str, object]:
        """Defined attribute values, in declaration order."""
        return {
            name: self._attributes[name]
            for name in self._class.all_attributes()
            if name in self._attributes
        }

    def restore_attribute(self, name: str, value: object) -> None:
        """Set an attribute read back from a store, skipping validation."""
        if value is None:
            self._attributes.pop(name, None)
        else:
            self._attributes[name] = value

    # ----- References -----

    def _reference(self, name: str) -> Reference:
        reference = self._class.all_references().get(name)
        if reference is None:
            raise UnknownFeature(f"{self._class.name} has no reference {name!r}")
        return reference

    def add_reference(
        self, name: str, target: Element, associated: Element | None = None
    ) -> None:
        """Link *target* under reference *name*, keeping the opposite side in sync."""
        reference = self._reference(name)
        if not reference.accepts(target):
            raise NonConformingTarget(
                f"{target!r} does not conform to {reference!r}"
            )
        if associated is not None and not reference.accepts_associated(associated):
            raise NonConformingTarget(
                f"{associated!r} is not a valid associated object for {reference!r}"
            )
        if reference.is_full(len(self._links.get(name, []))):
            raise CardinalityError(
                f"{self!r} already holds {reference.upper} {name!r} link(s)"
            )
        opposite = reference.opposite_reference()
        back = target._links.get(opposite.name, []) if opposite is not None else []
        if opposite is not None and opposite.is_full(len(back)):
            raise CardinalityError(
                f"{target!r} already holds {opposite.upper} {opposite.name!r} link(s)"
            )
        self._links.setdefault(name, []).append(Association(target, associated))
        if opposite is not None:
            target._links.setdefault(opposite.name, []).append(
                Association(self, associated)
            )

    def remove_reference(self, name: str, target: Element) -> None:
        reference = self._reference(name)
        links = self._links.get(name, [])
        self._links[name] = [link for link in links if link.target is not target]
        opposite = reference.opposite_reference()
        if opposite is not None:
            back = target._links.get(opposite.name, [])
            target._links[opposite.name] = [
                link for link in back if link.target is not self
            ]

    def clear_reference(self, name: str) -> None:
        for target in list(self.get(name)):
            self.remove_reference(name, target)

    def get_associated(self, name: str) -> list[Association]:
        """Return the ``(target, associated)`` links of reference *name*."""
        self._reference(name)
        return list(self._links.get(name, []))

    def __repr__(self) -> str:
        label = self._attributes.get("name")
        suffix = f" {label!r}" if isinstance(label, str) else ""
        return f"<{self._class.name}{suffix} {self._meta.uuid}>"


def conforms(obj: object, cls: Class) -> bool:
    """``True`` if *obj* is an element whose class is *cls* or a subclass."""
    return isinstance(obj, Element) and obj.conforms_to().is_a(cls)
