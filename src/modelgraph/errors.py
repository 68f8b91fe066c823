"""Exception hierarchy shared by the metamodel and graph layers."""

from __future__ import annotations


class ModelGraphError(Exception):
    """Base class for every error raised by modelgraph."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class InvalidCredentialsError(ModelGraphError, ValueError):
    """Raised when only one of user/password is supplied."""


# ---------------------------------------------------------------------------
# Metamodel
# ---------------------------------------------------------------------------


class MetamodelError(ModelGraphError):
    """Raised on misuse of classes, elements or models."""


class InvalidAttributeValue(MetamodelError, ValueError):
    """An attribute value was rejected by its attribute type."""

    def __init__(self, attribute: str, type_name: str, value: object) -> None:
        super().__init__(
            f"Invalid value for attribute {attribute!r} ({type_name}): {value!r}"
        )
        self.attribute = attribute
        self.type_name = type_name
        self.value = value


class UnknownFeature(MetamodelError, AttributeError):
    """The element's class declares no attribute or reference by that name."""


class NonConformingTarget(MetamodelError, TypeError):
    """A reference target (or associated object) has the wrong class."""


class CardinalityError(MetamodelError, ValueError):
    """Adding a link would exceed the reference's upper bound."""


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class ElementPersistenceError(ModelGraphError):
    """Writing one element to the store failed."""

    def __init__(self, properties: dict) -> None:
        super().__init__(f"Error with element: {properties!r}")
        self.properties = properties


class RelationshipPersistenceError(ModelGraphError):
    """Writing one reference edge to the store failed."""

    def __init__(self, source_id: str, reference: str, target_id: str) -> None:
        super().__init__(
            f"Error with reference: {source_id} - {reference} - {target_id}"
        )
        self.source_id = source_id
        self.reference = reference
        self.target_id = target_id


class IdentityRetriesExhausted(ElementPersistenceError):
    """Every freshly generated identity collided with an existing node."""
