"""
Storage Module - Black Box Interface

Purpose: Abstract all database connectivity
Interface: StorageModule.connect(), StorageModule.disconnect(), create_schema()
Hidden: Dialect selection, DSN translation, connection pooling

The configured db_type/db_dsn pair follows the formats the proxy itself
uses, so existing deployments can point the prober at the same DSN.
"""

import logging
import re
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from modelprobe.errors import ConfigError, StoreReadError, UnsupportedDatabaseError

from .tables import abilities, channels, metadata

logger = logging.getLogger("modelprobe.storage")

DRIVERS = {
    "mysql": "mysql+pymysql",
    "postgres": "postgresql+psycopg2",
    "sqlite": "sqlite",
    "sqlserver": "mssql+pymssql",
}

# user:password@tcp(host:port)/dbname?param=value
_MYSQL_DSN = re.compile(
    r"^(?:(?P<user>[^:@/]*)(?::(?P<password>[^@]*))?@)?"
    r"(?:(?P<net>\w+)\((?P<addr>[^)]*)\))?"
    r"/(?P<database>[^?]*)"
    r"(?:\?(?P<params>.*))?$"
)

# Go driver options with a pymysql equivalent; everything else is dropped
_MYSQL_KEEP_PARAMS = {"charset"}


def _mysql_url(dsn: str) -> URL:
    match = _MYSQL_DSN.match(dsn)
    if not match:
        raise ConfigError(f"cannot parse mysql DSN: {dsn!r}")

    host, port = None, None
    addr = match.group("addr")
    if addr:
        host, _, port_text = addr.partition(":")
        port = int(port_text) if port_text else None

    query = {}
    if match.group("params"):
        for pair in match.group("params").split("&"):
            name, _, value = pair.partition("=")
            if name in _MYSQL_KEEP_PARAMS:
                query[name] = value

    return URL.create(
        DRIVERS["mysql"],
        username=match.group("user") or None,
        password=match.group("password"),
        host=host or None,
        port=port,
        database=match.group("database") or None,
        query=query,
    )


def _sqlite_url(dsn: str) -> URL:
    if dsn == ":memory:":
        return make_url("sqlite://")
    path = dsn[len("file:"):] if dsn.startswith("file:") else dsn
    path = path.split("?", 1)[0]
    return URL.create(DRIVERS["sqlite"], database=path)


def _sqlserver_url(dsn: str) -> URL:
    url = make_url(DRIVERS["sqlserver"] + dsn[len("sqlserver"):])
    database = url.query.get("database")
    if database:
        url = url.set(database=database).difference_update_query(["database"])
    return url


def build_engine_args(db_type: str, dsn: str) -> Dict[str, Any]:
    """
    Translate a (db_type, dsn) pair into create_engine() arguments.

    Returns:
        Dictionary with "url" and optional "connect_args"

    Raises:
        UnsupportedDatabaseError: Unknown db_type
        ConfigError: DSN cannot be parsed
    """
    db_type = db_type.strip().lower()
    if db_type not in DRIVERS:
        raise UnsupportedDatabaseError(db_type)

    scheme = dsn.split("://", 1)[0] if "://" in dsn else None

    try:
        if db_type == "sqlite":
            if scheme:
                return {"url": make_url(dsn)}
            return {"url": _sqlite_url(dsn)}

        if db_type == "mysql":
            if scheme:
                return {"url": make_url(dsn)}
            return {"url": _mysql_url(dsn)}

        if db_type == "postgres":
            if scheme in ("postgres", "postgresql"):
                return {"url": make_url(DRIVERS["postgres"] + dsn[len(scheme):])}
            if scheme:
                return {"url": make_url(dsn)}
            # libpq key=value DSN, handed to psycopg2 untouched
            return {"url": make_url(DRIVERS["postgres"] + "://"), "connect_args": {"dsn": dsn}}

        if scheme == "sqlserver":
            return {"url": _sqlserver_url(dsn)}
        if scheme:
            return {"url": make_url(dsn)}
        raise ConfigError(f"sqlserver DSN must be a URL: {dsn!r}")
    except (ArgumentError, ValueError) as e:
        raise ConfigError(f"invalid {db_type} DSN: {e}") from e


class StorageModule:
    """Black box database connectivity."""

    def __init__(self, db_type: str, dsn: str):
        """
        Initialize storage for a configured database.

        Args:
            db_type: One of mysql, postgres, sqlite, sqlserver
            dsn: DSN in the driver's native format or a SQLAlchemy URL
        """
        self.db_type = db_type
        self._engine_args = build_engine_args(db_type, dsn)
        self._engine: Optional[Engine] = None

    def connect(self) -> Engine:
        """Get the shared engine, creating it on first use."""
        if self._engine is None:
            url = self._engine_args["url"]
            self._engine = create_engine(
                url,
                connect_args=self._engine_args.get("connect_args", {}),
                pool_pre_ping=True,
            )
            logger.info(f"Database engine created for {self.db_type} ({url.render_as_string(hide_password=True)})")
        return self._engine

    def ping(self) -> None:
        """
        Open one connection to prove the database is reachable.

        Raises:
            StoreReadError: If no connection can be made
        """
        try:
            with self.connect().connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StoreReadError(f"database connection failed: {e}") from e

    def disconnect(self) -> None:
        """Dispose of pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


def create_schema(engine: Engine) -> None:
    """Create the channels and abilities tables if they are missing."""
    metadata.create_all(engine)


__all__ = [
    "DRIVERS",
    "StorageModule",
    "abilities",
    "build_engine_args",
    "channels",
    "create_schema",
    "metadata",
]
