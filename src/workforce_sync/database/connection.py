from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: Optional[int] = None

    @classmethod
    def from_dict(cls, db_config: dict, *, connect_timeout: Optional[int] = None) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
            connect_timeout=connect_timeout,
        )


class DatabaseConnection:
    """Per-database connection factory.

    Note: We create short-lived connections per operation. The internal store and
    the external replica each get their own instance.
    """

    _instances: ClassVar[Dict[DBConfig, "DatabaseConnection"]] = {}

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if config not in cls._instances:
            cls._instances[config] = DatabaseConnection(config)
        return cls._instances[config]

    @property
    def database(self) -> str:
        return self._config.database

    def connect(self):
        kwargs = {}
        if self._config.connect_timeout:
            kwargs["connection_timeout"] = int(self._config.connect_timeout)
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            charset="utf8mb4",
            **kwargs,
        )
