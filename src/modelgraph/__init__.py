"""modelgraph — persist typed object models to Neo4j and load them back.

Exports are loaded lazily to keep ``import modelgraph`` cheap and free of
import cycles between the metamodel and graph packages.
"""

from __future__ import annotations

from importlib import import_module

__all__ = [
    "Class",
    "Connector",
    "Element",
    "Enum",
    "META_METAMODEL",
    "Model",
    "init",
]


_EXPORT_TO_MODULE = {
    "Class": "modelgraph.metamodel",
    "Element": "modelgraph.metamodel",
    "Enum": "modelgraph.metamodel",
    "Model": "modelgraph.metamodel",
    "Connector": "modelgraph.connector",
    "init": "modelgraph.connector",
    "META_METAMODEL": "modelgraph.reify",
}


def __getattr__(name: str):
    module_name = _EXPORT_TO_MODULE.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(module_name)
    return getattr(module, name)
