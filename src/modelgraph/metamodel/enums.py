"""Model-level enumerations, usable as attribute types."""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Mapping

from modelgraph.errors import InvalidAttributeValue
from modelgraph.metamodel.identity import ElementMeta


class Enum:
    """A named set of literals.

    *literals* is either a ``name -> value`` mapping or a sequence of names,
    in which case each value is the literal's position.  Literal values are
    reachable by attribute access (``Color.red``).
    """

    def __init__(self, name: str, literals: Mapping[str, object] | Iterable[str]) -> None:
        self.name = name
        if isinstance(literals, Mapping):
            self.literals: dict[str, object] = dict(literals)
        else:
            self.literals = {literal: index for index, literal in enumerate(literals)}
        self._meta = ElementMeta()
        self._literal_metas = {literal: ElementMeta() for literal in self.literals}

    def __getattr__(self, name: str) -> object:
        literals = self.__dict__.get("literals", {})
        if name in literals:
            return literals[name]
        raise AttributeError(name)

    def validate(self, value: object, attribute: str = "<value>") -> object:
        if value in self.literals.values():
            return value
        raise InvalidAttributeValue(attribute, self.name, value)

    def name_of(self, value: object) -> str | None:
        for literal, literal_value in self.literals.items():
            if literal_value == value:
                return literal
        return None

    def literal_meta(self, literal: str) -> ElementMeta:
        return self._literal_metas.setdefault(literal, ElementMeta())

    def __repr__(self) -> str:
        return f"Enum({self.name}: {', '.join(self.literals)})"
