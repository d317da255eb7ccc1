"""Database registration from environment settings and connection pool warming."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from crudblueprint.config import EnvConfig, normalize_engine

logger = logging.getLogger(__name__)

PRIMARY_NAME = "default"
ANALYTICS_NAME = "analytics"
_PROBE_SQL = "SELECT 1"


@dataclass(frozen=True)
class DbConfig:
    """Connection settings for one named database client."""

    engine: str
    name: str
    database_name: str
    connection_number: int
    timeout: float
    host: str = ""
    port: int = 0
    username: str = ""
    password: str = ""
    is_fast: bool = False
    character_set: str = ""
    auto_batch: bool = False


def make_db_config(
    engine: str,
    host: str,
    port: int,
    db_name: str,
    user: str,
    password: str,
    pool_size: int,
    fast_mode: bool,
    timeout: float,
    name: str,
) -> DbConfig:
    """Build the settings for ``engine``; anything but sqlite3 or mysql is treated as postgresql.

    For sqlite3 ``db_name`` is the database file and the network settings are unused.
    """
    if engine == "sqlite3":
        return DbConfig(
            engine="sqlite3",
            name=name,
            database_name=db_name,
            connection_number=pool_size,
            timeout=timeout,
        )
    return DbConfig(
        engine="mysql" if engine == "mysql" else "postgresql",
        name=name,
        database_name=db_name,
        connection_number=pool_size,
        timeout=timeout,
        host=host,
        port=port,
        username=user,
        password=password,
        is_fast=fast_mode,
        character_set="",
        auto_batch=False,
    )


class DatabaseManager:
    """Registers the configured databases and remembers their client names."""

    def __init__(self) -> None:
        self._names: list[str] = []

    def register_databases(
        self, config: EnvConfig, thread_count: int | None = None
    ) -> list[DbConfig]:
        """Build settings for the primary database and, if ``DB_ANALYTICS_HOST`` is set, the analytics one.

        Raises ``ValueError`` when a timeout setting is not a number.
        """
        threads = thread_count or os.cpu_count() or 1
        registered: list[DbConfig] = []

        rdbms = config.db_rdbms()
        primary = make_db_config(
            rdbms,
            config.get("DB_HOST", "localhost"),
            config.get_int("DB_PORT", config.db_default_port()),
            config.get("DB_NAME", "mydb"),
            config.get("DB_USER", "postgres"),
            config.get("DB_PASSWORD", ""),
            config.get_int("DB_POOL_SIZE", 5),
            config.get_bool("DB_FAST_MODE", True),
            float(config.get("DB_TIMEOUT", "30.0")),
            PRIMARY_NAME,
        )
        self._log_registration(primary, threads)
        registered.append(primary)
        self._names.append(PRIMARY_NAME)

        analytics_host = config.get("DB_ANALYTICS_HOST", "")
        if analytics_host:
            analytics = make_db_config(
                normalize_engine(config.get("DB_ANALYTICS_ENGINE", rdbms)),
                analytics_host,
                config.get_int("DB_ANALYTICS_PORT", 5432),
                config.get("DB_ANALYTICS_NAME", "analytics"),
                config.get("DB_ANALYTICS_USER", "postgres"),
                config.get("DB_ANALYTICS_PASSWORD", ""),
                config.get_int("DB_ANALYTICS_POOL_SIZE", 2),
                config.get_bool("DB_ANALYTICS_FAST_MODE", True),
                float(config.get("DB_ANALYTICS_TIMEOUT", "60.0")),
                ANALYTICS_NAME,
            )
            self._log_registration(analytics, threads)
            registered.append(analytics)
            self._names.append(ANALYTICS_NAME)

        return registered

    @staticmethod
    def _log_registration(db: DbConfig, threads: int) -> None:
        logger.info(
            "Registered database '%s': %s@%s:%d/%s (pool: %d, total: ~%d, fast: %s)",
            db.name,
            db.engine,
            db.host,
            db.port,
            db.database_name,
            db.connection_number,
            (threads + 1) * db.connection_number,
            "true" if db.is_fast else "false",
        )

    def registered_names(self) -> list[str]:
        """Names of the registered database clients, in registration order."""
        return list(self._names)

    async def warm_pools(self, clients: Mapping[str, Any]) -> dict[str, bool]:
        """Run a trivial query on every registered client; report which ones answered.

        Each client is expected to offer ``async execute(sql)``.
        """
        outcome: dict[str, bool] = {}
        for name in self._names:
            client = clients.get(name)
            if client is None:
                logger.error("Database '%s' client not available for warming", name)
                outcome[name] = False
                continue
            try:
                await client.execute(_PROBE_SQL)
            except Exception as exc:  # any driver failure just marks the pool cold
                logger.error("Database '%s' warming failed: %s", name, exc)
                outcome[name] = False
            else:
                logger.info("Database '%s' pool warmed successfully", name)
                outcome[name] = True
        return outcome