"""Configuration dataclasses.

Frozen dataclasses with sensible defaults for each subsystem.
No env-var loading or YAML parsing — just plain defaults that can
be overridden at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass

from modelgraph.errors import InvalidCredentialsError


@dataclass(frozen=True)
class ConnectionConfig:
    """Where and how to reach the Neo4j server."""

    url: str = "bolt://localhost:7687"
    user: str | None = None
    password: str | None = None
    database: str | None = None

    def validate(self) -> None:
        """Reject a half-specified credential pair."""
        if (self.user is None) != (self.password is None):
            raise InvalidCredentialsError("Invalid user/password pair")

    @property
    def auth(self) -> tuple[str, str] | None:
        if self.user is None or self.password is None:
            return None
        return (self.user, self.password)


@dataclass(frozen=True)
class StorageConfig:
    """Names used on the wire for every stored node."""

    # Label carried by every node written by modelgraph
    marker_label: str = "ModelGraph"
    # Property holding the stable identity (UUID string)
    id_property: str = "__modelgraph__"
    # Upper bound on identity regenerations after a uniqueness collision
    max_identity_retries: int = 16


@dataclass(frozen=True)
class LoadConfig:
    """Settings for model reconstruction."""

    model_name: str = "LoadedModel"
