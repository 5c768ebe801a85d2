from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import mysql.connector

from ..core.exceptions import StoreUnavailable


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int = 5

    @classmethod
    def from_mapping(cls, db_config: Mapping) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "attendance_gate")),
            connection_timeout=int(db_config.get("connection_timeout", 5)),
        )


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation; the attendance store
    is a collaborator database, this process keeps no state in it between calls.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self, *, with_database: bool = True):
        kwargs = dict(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            connection_timeout=self._config.connection_timeout,
        )
        if with_database:
            kwargs["database"] = self._config.database
        try:
            return mysql.connector.connect(**kwargs)
        except mysql.connector.Error as e:
            raise StoreUnavailable(f"Cannot reach attendance database: {e}") from e
