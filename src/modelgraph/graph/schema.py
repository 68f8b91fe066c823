"""Neo4j schema bootstrap — identity constraints on the marker label.

Both statements use ``IF NOT EXISTS`` so they are safe to run repeatedly
(idempotent). The existence constraint needs Enterprise Edition; on
Community Edition it is reported and skipped while the uniqueness
constraint is still enforced.
"""

from __future__ import annotations

import logging

from neo4j import AsyncDriver
from neo4j.exceptions import Neo4jError

from modelgraph.config import StorageConfig
from modelgraph.graph.serialization import quote_name

logger = logging.getLogger(__name__)


def constraint_names(storage: StorageConfig) -> tuple[str, str]:
    """Names of the (uniqueness, existence) constraints."""
    prefix = storage.marker_label.lower()
    return (f"{prefix}_id_unique", f"{prefix}_id_exists")


def constraint_statements(storage: StorageConfig) -> tuple[str, str]:
    unique_name, exists_name = constraint_names(storage)
    label = quote_name(storage.marker_label)
    key = quote_name(storage.id_property)
    uniqueness = (
        f"CREATE CONSTRAINT {unique_name} IF NOT EXISTS "
        f"FOR (n:{label}) REQUIRE n.{key} IS UNIQUE"
    )
    existence = (
        f"CREATE CONSTRAINT {exists_name} IF NOT EXISTS "
        f"FOR (n:{label}) REQUIRE n.{key} IS NOT NULL"
    )
    return uniqueness, existence


async def init_storage(
    driver: AsyncDriver,
    storage: StorageConfig | None = None,
    *,
    database: str | None = None,
) -> None:
    """Declare the identity constraints (idempotent).

    Runs each statement on its own; schema commands cannot share a
    transaction with each other in Neo4j.
    """
    uniqueness, existence = constraint_statements(storage or StorageConfig())
    async with driver.session(database=database) as session:
        result = await session.run(uniqueness)
        await result.consume()
        try:
            result = await session.run(existence)
            await result.consume()
        except Neo4jError as exc:
            logger.warning(
                "Existence constraint not available (code=%s); relying on "
                "serialization to always set the identity property",
                exc.code,
            )
