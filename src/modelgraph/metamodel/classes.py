"""Classes and their feature descriptors.

A :class:`Class` declares attributes (name -> type) and references
(name -> target class) and may specialise any number of superclasses.
Features are inherited; the declaration closest to the class wins.
"""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Mapping

from modelgraph.errors import MetamodelError
from modelgraph.metamodel.element import Element
from modelgraph.metamodel.identity import ElementMeta
from modelgraph.metamodel.types import AttributeTypeLike
from modelgraph.metamodel.types import as_attribute_type


class Attribute:
    """A typed attribute declared by one class."""

    def __init__(
        self,
        name: str,
        type: object,
        *,
        owner: Class,
        mandatory: bool = False,
    ) -> None:
        self.name = name
        self.type: AttributeTypeLike = as_attribute_type(type)
        self.owner = owner
        self.mandatory = mandatory
        self._meta = ElementMeta()

    def __repr__(self) -> str:
        return f"Attribute({self.owner.name}.{self.name}: {self.type.name})"


class Reference:
    """A directed reference from ``owner`` to ``type``.

    ``type`` may be ``None`` to accept any element.  ``associated`` names the
    class of the optional object carried on each edge.  ``derived`` marks the
    reverse side that was generated from an ``opposite`` declaration; only
    the declaring side is persisted as an edge.

    ``upper`` caps the number of links an element may hold (``None`` for no
    limit) and is checked on every link.  ``lower`` is stored with the
    meta-model but never checked, since an element is built up one link at
    a time.
    """

    def __init__(
        self,
        name: str,
        *,
        owner: Class,
        type: Class | None,
        lower: int = 0,
        upper: int | None = None,
        opposite: str | None = None,
        associated: Class | None = None,
        derived: bool = False,
    ) -> None:
        self.name = name
        self.owner = owner
        self.type = type
        self.lower = lower
        self.upper = upper
        self.opposite = opposite
        self.associated = associated
        self.derived = derived
        self._meta = ElementMeta()

    def accepts(self, target: object) -> bool:
        if not isinstance(target, Element):
            return False
        return self.type is None or target.conforms_to().is_a(self.type)

    def accepts_associated(self, associated: object) -> bool:
        if not isinstance(associated, Element):
            return False
        return self.associated is None or associated.conforms_to().is_a(
            self.associated
        )

    def is_full(self, count: int) -> bool:
        return self.upper is not None and count >= self.upper

    def opposite_reference(self) -> Reference | None:
        """Return the reverse-side descriptor, if any."""
        if self.opposite is None or self.type is None:
            return None
        return self.type.all_references().get(self.opposite)

    def primary(self) -> Reference:
        """The side of an opposite pair that is stored as the edge."""
        if self.derived:
            opposite = self.opposite_reference()
            if opposite is not None:
                return opposite
        return self

    def __repr__(self) -> str:
        target = self.type.name if self.type is not None else "*"
        return f"Reference({self.owner.name}.{self.name} -> {target})"


class Class:
    """A family of elements sharing attributes, references and ancestors."""

    def __init__(
        self,
        name: str,
        superclasses: Class | Iterable[Class] = (),
        attributes: Mapping[str, object] | None = None,
        references: Mapping[str, Class | None | Mapping[str, object]] | None = None,
    ) -> None:
        self.name = name
        if isinstance(superclasses, Class):
            superclasses = [superclasses]
        self.superclasses: list[Class] = list(superclasses)
        self.attributes: dict[str, Attribute] = {}
        self.references: dict[str, Reference] = {}
        self._meta = ElementMeta()
        for attr_name, attr_type in (attributes or {}).items():
            self.add_attribute(attr_name, attr_type)
        for ref_name, ref_spec in (references or {}).items():
            if isinstance(ref_spec, Mapping):
                options = dict(ref_spec)
                target = options.pop("target", None)
                self.add_reference(ref_name, target, **options)
            else:
                self.add_reference(ref_name, ref_spec)

    # ----- Declaration -----

    def add_attribute(
        self, name: str, type: object, mandatory: bool = False
    ) -> Attribute:
        attribute = Attribute(name, type, owner=self, mandatory=mandatory)
        self.attributes[name] = attribute
        return attribute

    def add_reference(
        self,
        name: str,
        target: Class | None,
        *,
        lower: int = 0,
        upper: int | None = None,
        opposite: str | None = None,
        opposite_lower: int = 0,
        opposite_upper: int | None = None,
        associated: Class | None = None,
    ) -> Reference:
        """Declare a reference; with *opposite*, also declare the reverse side on *target*."""
        if opposite is not None and target is None:
            msg = f"Reference {name!r} needs a target class to declare an opposite"
            raise MetamodelError(msg)
        reference = Reference(
            name,
            owner=self,
            type=target,
            lower=lower,
            upper=upper,
            opposite=opposite,
            associated=associated,
        )
        self.references[name] = reference
        if opposite is not None:
            target.references[opposite] = Reference(
                opposite,
                owner=target,
                type=self,
                lower=opposite_lower,
                upper=opposite_upper,
                opposite=name,
                associated=associated,
                derived=True,
            )
        return reference

    # ----- Introspection -----

    def inheritance_chain(self) -> list[Class]:
        """The class itself, then every ancestor (depth-first, no repeats)."""
        chain: list[Class] = [self]
        for parent in self.superclasses:
            for cls in parent.inheritance_chain():
                if cls not in chain:
                    chain.append(cls)
        return chain

    def is_a(self, other: Class) -> bool:
        return other in self.inheritance_chain()

    def all_attributes(self) -> dict[str, Attribute]:
        result: dict[str, Attribute] = {}
        for cls in reversed(self.inheritance_chain()):
            result.update(cls.attributes)
        return result

    def all_references(self) -> dict[str, Reference]:
        result: dict[str, Reference] = {}
        for cls in reversed(self.inheritance_chain()):
            result.update(cls.references)
        return result

    # ----- Instantiation -----

    def new_instance(self, **values: object) -> Element:
        return Element(self, **values)

    __call__ = new_instance

    def __repr__(self) -> str:
        return f"Class({self.name})"
