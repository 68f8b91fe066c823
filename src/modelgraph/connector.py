"""Connector — the public entry point tying a Neo4j driver to save/load.

Create one with :func:`init` (or :meth:`Connector.connect`), call
:meth:`Connector.init_storage` once per database, then save and load
models.  Close it (or use it as an async context manager) at shutdown.
"""

from __future__ import annotations

import logging
from time import perf_counter

from neo4j import AsyncDriver
from neo4j import AsyncGraphDatabase

from modelgraph.config import ConnectionConfig
from modelgraph.config import LoadConfig
from modelgraph.config import StorageConfig
from modelgraph.graph.loader import ModelLoader
from modelgraph.graph.schema import init_storage
from modelgraph.graph.store import ModelWriter
from modelgraph.metamodel.model import Model
from modelgraph.observability import record_latency

logger = logging.getLogger(__name__)


class Connector:
    """Owns the long-lived async driver shared by every save and load."""

    def __init__(
        self,
        driver: AsyncDriver,
        config: ConnectionConfig,
        *,
        storage: StorageConfig | None = None,
        load_config: LoadConfig | None = None,
    ) -> None:
        self._driver = driver
        self.config = config
        self.storage = storage or StorageConfig()
        self.load_config = load_config or LoadConfig()

    @classmethod
    def connect(
        cls,
        url: str,
        user: str | None = None,
        password: str | None = None,
        *,
        database: str | None = None,
        storage: StorageConfig | None = None,
        load_config: LoadConfig | None = None,
        **driver_options: object,
    ) -> Connector:
        """Validate credentials, then create the driver.

        Extra keyword arguments (``encrypted``, ``trusted_certificates``, ...)
        are passed to ``AsyncGraphDatabase.driver``.
        """
        config = ConnectionConfig(url=url, user=user, password=password, database=database)
        config.validate()
        driver = AsyncGraphDatabase.driver(url, auth=config.auth, **driver_options)
        return cls(driver, config, storage=storage, load_config=load_config)

    @property
    def driver(self) -> AsyncDriver:
        return self._driver

    @property
    def store_id(self) -> str:
        """Identifies this store in the elements' "stored in" marker."""
        if self.config.database:
            return f"{self.config.url}/{self.config.database}"
        return self.config.url

    # ----- Lifecycle -----

    async def close(self) -> None:
        await self._driver.close()

    async def __aenter__(self) -> Connector:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def init_storage(self) -> None:
        """Declare the identity constraints (idempotent)."""
        await init_storage(self._driver, self.storage, database=self.config.database)

    # ----- Save / load -----

    def writer(self) -> ModelWriter:
        return ModelWriter(
            self._driver,
            store_id=self.store_id,
            storage=self.storage,
            database=self.config.database,
        )

    def loader(self) -> ModelLoader:
        return ModelLoader(
            self._driver,
            store_id=self.store_id,
            storage=self.storage,
            config=self.load_config,
            database=self.config.database,
        )

    async def save_model(self, model: Model, own_types: bool = False) -> None:
        """Persist *model* with its full meta-model chain."""
        start = perf_counter()
        ok = False
        try:
            node_ids = await self.writer().save_model(model, own_types=own_types)
            ok = True
        finally:
            record_latency(
                operation="modelgraph.save_model",
                duration_ms=(perf_counter() - start) * 1000,
                ok=ok,
            )
        logger.info("Saved model %r as %d nodes", model.name, len(node_ids))

    async def load_model(self, meta_model: Model) -> Model:
        """Rebuild a model conforming to *meta_model* from the store."""
        start = perf_counter()
        ok = False
        try:
            model = await self.loader().load_model(meta_model)
            ok = True
            return model
        finally:
            record_latency(
                operation="modelgraph.load_model",
                duration_ms=(perf_counter() - start) * 1000,
                ok=ok,
            )


def init(
    url: str,
    user: str | None = None,
    password: str | None = None,
    **options: object,
) -> Connector:
    """Shorthand for :meth:`Connector.connect`."""
    return Connector.connect(url, user, password, **options)
