from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import mysql.connector

from ..core.constants import DEFAULT_CONNECT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT_SECONDS

    @classmethod
    def from_mapping(cls, db_config: Mapping) -> "DBConfig":
        """Build from a settings ``DB_CONFIG`` dict."""
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
            connect_timeout=int(db_config.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT_SECONDS)),
        )


class DatabaseConnection:
    """Process-wide factory for short-lived store connections.

    Every connection is opened per operation and bounded by
    ``connect_timeout``; an unreachable server becomes a connector error
    (mapped to ``StoreUnavailableError`` by ``db_cursor``), never a hang.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=self._config.port,
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=self._config.connect_timeout,
            autocommit=False,
        )
