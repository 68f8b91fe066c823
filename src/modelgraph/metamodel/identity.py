"""Stable identities and the "stored in" marker.

Every identifiable object (elements, classes, enums, models and the
attribute/reference descriptors of a class) owns an :class:`ElementMeta`.
Reified stand-ins share the meta of the object they represent, so an
identity survives across save operations.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from dataclasses import field


Identity = uuid.UUID | str


def generate_id() -> uuid.UUID:
    """Return a fresh random identity."""
    return uuid.uuid4()


def parse_id(value: Identity) -> Identity:
    """Parse a stored identity; keep it verbatim when it is not a UUID.

    Nodes written by other tools (or by hand) may carry any string under
    the id property. Such identities still round-trip unchanged.
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(value)
    except ValueError:
        return value


@dataclass
class ElementMeta:
    """Identity plus the id of the store currently holding a copy."""

    uuid: Identity = field(default_factory=generate_id)
    stored_in: str | None = None


def meta_of(obj: object) -> ElementMeta:
    meta = getattr(obj, "_meta", None)
    if not isinstance(meta, ElementMeta):
        msg = f"Object has no modelgraph identity: {obj!r}"
        raise TypeError(msg)
    return meta


def element_id(obj: object) -> Identity:
    """Return the stable identity of *obj*."""
    return meta_of(obj).uuid


def set_element_id(obj: object, value: Identity) -> None:
    meta_of(obj).uuid = parse_id(value)


def share_identity(target: object, source: object) -> None:
    """Make *target* use the very same meta object as *source*."""
    object.__setattr__(target, "_meta", meta_of(source))


def is_stored_in(obj: object, store_id: str) -> bool:
    return meta_of(obj).stored_in == store_id


def mark_stored(obj: object, store_id: str) -> None:
    meta_of(obj).stored_in = store_id
