"""Connection settings for the relational and document databases."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

_MONGODB_TIMEOUT = 60.0


@dataclass(frozen=True)
class DatabaseConfig:
    """Where a database lives and how to log in; ``timeout`` is in seconds."""

    host: str = ""
    database: str = ""
    port: str = ""
    driver: str = ""
    user: str = ""
    password: str = ""
    timeout: float = 0.0

    @classmethod
    def mongodb_from_env(cls, environ: Mapping[str, str] | None = None) -> DatabaseConfig:
        """Read the document database settings from ``MONGODB_*`` variables."""
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("MONGODB_HOST", ""),
            database=env.get("MONGODB_DATABASE", ""),
            password=env.get("MONGODB_ROOT_PASSWORD", ""),
            user=env.get("MONGODB_ROOT_USER", ""),
            timeout=_MONGODB_TIMEOUT,
        )

    @classmethod
    def postgres_from_env(cls, environ: Mapping[str, str] | None = None) -> DatabaseConfig:
        """Read the relational database settings from ``POSTGRES_*`` variables."""
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("POSTGRES_HOST", ""),
            database=env.get("POSTGRES_DATABASE", ""),
            port=env.get("POSTGRES_PORT", ""),
            driver=env.get("POSTGRES_DRIVER", ""),
            user=env.get("POSTGRES_USER", ""),
            password=env.get("POSTGRES_PASSWORD", ""),
        )

    def mongodb_uri(self) -> str:
        """Return the connection URI of a replica-set document database."""
        return (
            f"mongodb://{self.user}:{self.password}@{self.host}/{self.database}"
            "?replicaSet=replicaset&&ssl=false&authSource=admin"
        )

    def postgres_dsn(self) -> str:
        """Return the key/value connection string of a relational database."""
        return (
            f"host={self.host} port={self.port} user={self.user} "
            f"dbname={self.database} sslmode=disable password={self.password}"
        )