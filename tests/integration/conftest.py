"""Integration fixtures — a clean Neo4j database and a wired Connector."""

from __future__ import annotations

import asyncio

import pytest
from neo4j import AsyncGraphDatabase

from modelgraph.config import ConnectionConfig
from modelgraph.connector import Connector


@pytest.fixture(autouse=True)
async def clean_neo4j(neo4j_driver):
    """Wipe all nodes and relationships before each test."""
    async with neo4j_driver.session() as session:
        await session.run("MATCH (n) DETACH DELETE n")
    yield


@pytest.fixture(scope="session")
def _storage_initialized(neo4j_container):
    """Declare the identity constraints once per session."""
    from modelgraph.graph.schema import init_storage

    async def _init():
        driver = AsyncGraphDatabase.driver(neo4j_container)
        await init_storage(driver)
        await driver.close()

    asyncio.run(_init())
    return True


@pytest.fixture()
async def connector(neo4j_driver, neo4j_container, _storage_initialized):
    """Yield a Connector sharing the test driver (closed by its own fixture)."""
    return Connector(neo4j_driver, ConnectionConfig(url=neo4j_container))
