"""Graph domain — Neo4j storage of models: schema, save path and load path.

Exports are loaded lazily so importing the metamodel alone never pulls in
the Neo4j driver.
"""

from __future__ import annotations

from importlib import import_module

__all__ = [
    "ModelLoader",
    "ModelWriter",
    "filter_class_hierarchy",
    "gather_elements",
    "init_storage",
    "serialize_element",
]


_EXPORT_TO_MODULE = {
    "ModelLoader": "modelgraph.graph.loader",
    "filter_class_hierarchy": "modelgraph.graph.loader",
    "ModelWriter": "modelgraph.graph.store",
    "gather_elements": "modelgraph.graph.store",
    "init_storage": "modelgraph.graph.schema",
    "serialize_element": "modelgraph.graph.serialization",
}


def __getattr__(name: str):
    module_name = _EXPORT_TO_MODULE.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(module_name)
    return getattr(module, name)
