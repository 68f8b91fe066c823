"""Attribute types — value validation backed by pydantic ``TypeAdapter``.

Every attribute declared on a :class:`~modelgraph.metamodel.classes.Class`
has a type exposing ``name`` and ``validate(value, attribute)``.  The
built-ins below wrap strict pydantic adapters; an
:class:`~modelgraph.metamodel.enums.Enum` satisfies the same protocol.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from typing import Any as AnyValue
from typing import Protocol
from typing import runtime_checkable

from pydantic import Field
from pydantic import StrictBool
from pydantic import StrictFloat
from pydantic import StrictInt
from pydantic import StrictStr
from pydantic import TypeAdapter
from pydantic import ValidationError

from modelgraph.errors import InvalidAttributeValue
from modelgraph.errors import MetamodelError


@runtime_checkable
class AttributeTypeLike(Protocol):
    """Anything usable as the type of an attribute."""

    name: str

    def validate(self, value: object, attribute: str = "<value>") -> object: ...


class AttributeType:
    """A named attribute type validated by a strict pydantic adapter."""

    def __init__(self, name: str, annotation: object) -> None:
        self.name = name
        self._adapter: TypeAdapter = TypeAdapter(annotation)

    def validate(self, value: object, attribute: str = "<value>") -> object:
        """Return *value* if it conforms, else raise ``InvalidAttributeValue``."""
        try:
            return self._adapter.validate_python(value, strict=True)
        except ValidationError as exc:
            raise InvalidAttributeValue(attribute, self.name, value) from exc

    def __repr__(self) -> str:
        return f"AttributeType({self.name})"


def _bounded(**constraints: float) -> object:
    return (
        Annotated[StrictInt, Field(**constraints)]
        | Annotated[StrictFloat, Field(**constraints)]
    )


# ---------------------------------------------------------------------------
# Built-in types
# ---------------------------------------------------------------------------

String = AttributeType("String", StrictStr)
Number = AttributeType("Number", StrictInt | StrictFloat)
Integer = AttributeType("Integer", StrictInt)
Positive = AttributeType("Positive", _bounded(ge=0))
Negative = AttributeType("Negative", _bounded(lt=0))
Boolean = AttributeType("Boolean", StrictBool)
Date = AttributeType("Date", datetime)
Array = AttributeType("Array", list[AnyValue])
Any = AttributeType("Any", AnyValue)

_PYTHON_TYPES: dict[type, AttributeType] = {
    str: String,
    int: Integer,
    float: Number,
    bool: Boolean,
    datetime: Date,
    list: Array,
}


def Range(minimum: float, maximum: float) -> AttributeType:  # noqa: N802
    """Numbers within ``[minimum, maximum]``."""
    if minimum > maximum:
        msg = f"Empty range: {minimum} > {maximum}"
        raise MetamodelError(msg)
    return AttributeType(
        f"Range[{minimum},{maximum}]", _bounded(ge=minimum, le=maximum)
    )


def as_attribute_type(value: object) -> AttributeTypeLike:
    """Normalize a declared type: attribute types, enums or plain Python types."""
    if isinstance(value, type) and value in _PYTHON_TYPES:
        return _PYTHON_TYPES[value]
    if isinstance(value, AttributeTypeLike):
        return value
    msg = f"Not an attribute type: {value!r}"
    raise MetamodelError(msg)
