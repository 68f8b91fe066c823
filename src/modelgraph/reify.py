"""Reification of meta-level objects into ordinary storable elements.

Models, classes and enums are not elements themselves.  To persist them
next to instance data, each is rewritten as an instance of the small
vocabulary below (``Model``, ``Class``, ``Attribute``, ``Reference``,
``Enum``, ``EnumLiteral``).

Reification goes through a cache keyed by the original object, shared by
one save operation: reifying the same object twice yields the same
element, and the save path uses the cache to swap originals for their
stand-ins.  Stand-ins share the identity meta of the object they replace.
"""

from __future__ import annotations

from modelgraph.metamodel.classes import Attribute
from modelgraph.metamodel.classes import Class
from modelgraph.metamodel.classes import Reference
from modelgraph.metamodel.element import Element
from modelgraph.metamodel.enums import Enum
from modelgraph.metamodel.identity import share_identity
from modelgraph.metamodel.model import Model
from modelgraph.metamodel.types import Any
from modelgraph.metamodel.types import Boolean
from modelgraph.metamodel.types import Integer
from modelgraph.metamodel.types import String

ReificationCache = dict[object, Element]

# ---------------------------------------------------------------------------
# Reification vocabulary
# ---------------------------------------------------------------------------

MODEL = Class("Model", attributes={"name": String})
CLASS = Class("Class", attributes={"name": String})
ATTRIBUTE = Class(
    "Attribute",
    attributes={"name": String, "type": String, "mandatory": Boolean},
)
REFERENCE = Class(
    "Reference",
    attributes={
        "name": String,
        "lower": Integer,
        "upper": Integer,
        "opposite": String,
        "derived": Boolean,
    },
)
ENUM = Class("Enum", attributes={"name": String})
ENUM_LITERAL = Class("EnumLiteral", attributes={"name": String, "value": Any})

MODEL.add_reference("modellingElements", None)
MODEL.add_reference("referenceModel", MODEL, upper=1)
CLASS.add_reference("superClasses", CLASS)
CLASS.add_reference("attributes", ATTRIBUTE)
CLASS.add_reference("references", REFERENCE)
REFERENCE.add_reference("type", CLASS, upper=1)
REFERENCE.add_reference("associated", CLASS, upper=1)
ENUM.add_reference("literals", ENUM_LITERAL)

META_METAMODEL = Model(
    "ModelGraphMetamodel",
    None,
    [MODEL, CLASS, ATTRIBUTE, REFERENCE, ENUM, ENUM_LITERAL],
)


def _stand_in(cls: Class, source: object, **values: object) -> Element:
    element = cls.new_instance(**values)
    share_identity(element, source)
    return element


# ---------------------------------------------------------------------------
# Per-kind reifiers
# ---------------------------------------------------------------------------


def reify_model(obj: object, cache: ReificationCache) -> Element | None:
    """Reify a :class:`Model`; ``None`` if *obj* is not one."""
    if not isinstance(obj, Model):
        return None
    cached = cache.get(obj)
    if cached is not None:
        return cached
    reified = _stand_in(MODEL, obj, name=obj.name)
    cache[obj] = reified
    for element in obj.elements():
        reified.add_reference("modellingElements", _reify_or_keep(element, cache))
    if isinstance(obj.reference_model, Model):
        reified.add_reference(
            "referenceModel", reify_model(obj.reference_model, cache)
        )
    return reified


def reify_class(obj: object, cache: ReificationCache) -> Element | None:
    """Reify a :class:`Class` with its own features; ``None`` if not a class."""
    if not isinstance(obj, Class):
        return None
    cached = cache.get(obj)
    if cached is not None:
        return cached
    reified = _stand_in(CLASS, obj, name=obj.name)
    cache[obj] = reified
    for parent in obj.superclasses:
        reified.add_reference("superClasses", reify_class(parent, cache))
    for attribute in obj.attributes.values():
        reified.add_reference("attributes", _reify_attribute(attribute, cache))
    for reference in obj.references.values():
        reified.add_reference("references", _reify_reference(reference, cache))
    return reified


def reify_enum(obj: object, cache: ReificationCache) -> Element | None:
    """Reify an :class:`Enum` and its literals; ``None`` if not an enum."""
    if not isinstance(obj, Enum):
        return None
    cached = cache.get(obj)
    if cached is not None:
        return cached
    reified = _stand_in(ENUM, obj, name=obj.name)
    cache[obj] = reified
    for literal, value in obj.literals.items():
        stand_in = ENUM_LITERAL.new_instance(name=literal, value=value)
        object.__setattr__(stand_in, "_meta", obj.literal_meta(literal))
        reified.add_reference("literals", stand_in)
    return reified


def _reify_attribute(attribute: Attribute, cache: ReificationCache) -> Element:
    cached = cache.get(attribute)
    if cached is None:
        cached = _stand_in(
            ATTRIBUTE,
            attribute,
            name=attribute.name,
            type=attribute.type.name,
            mandatory=attribute.mandatory,
        )
        cache[attribute] = cached
    return cached


def _reify_reference(reference: Reference, cache: ReificationCache) -> Element:
    cached = cache.get(reference)
    if cached is not None:
        return cached
    reified = _stand_in(
        REFERENCE,
        reference,
        name=reference.name,
        lower=reference.lower,
        upper=reference.upper,
        opposite=reference.opposite,
        derived=reference.derived,
    )
    cache[reference] = reified
    if reference.type is not None:
        reified.add_reference("type", reify_class(reference.type, cache))
    if reference.associated is not None:
        reified.add_reference("associated", reify_class(reference.associated, cache))
    return reified


def _reify_or_keep(obj: object, cache: ReificationCache) -> object:
    for reifier in (reify_model, reify_class, reify_enum):
        reified = reifier(obj, cache)
        if reified is not None:
            return reified
    return obj


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def is_meta_object(obj: object) -> bool:
    return isinstance(obj, (Model, Class, Enum))


def reify_meta_element(obj: object, cache: ReificationCache) -> list[object]:
    """Return the storable elements standing for *obj*.

    A model becomes one element; a class or enum becomes its stand-in plus
    every stand-in reachable from it (features, parents, literals), even
    when the stand-in was already cached while reifying an enclosing model.
    Any other object is returned unchanged.
    """
    for reifier in (reify_class, reify_enum):
        reified = reifier(obj, cache)
        if reified is not None:
            return Model("", None, reified, transitive=True).elements()
    model = reify_model(obj, cache)
    if model is not None:
        return [model]
    return [obj]


def canonical(obj: object, cache: ReificationCache) -> object:
    """The stand-in for *obj* if it is a meta-level object, else *obj*."""
    cached = cache.get(obj)
    if cached is not None:
        return cached
    return _reify_or_keep(obj, cache)


__all__ = [
    "ATTRIBUTE",
    "CLASS",
    "ENUM",
    "ENUM_LITERAL",
    "META_METAMODEL",
    "MODEL",
    "REFERENCE",
    "ReificationCache",
    "canonical",
    "is_meta_object",
    "reify_class",
    "reify_enum",
    "reify_meta_element",
    "reify_model",
]
