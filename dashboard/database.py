"""Process-scoped database handle.

A single :class:`Database` is built by :func:`dashboard.create_app` and handed
to every query function. The SQLAlchemy engine behind it is created lazily, at
most once, and only when a connection URL is configured so that build steps
without credentials never try to reach a server.
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import weakref
from typing import Mapping, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import ConfigurationError, DatabaseConfig, database_url, resolve_database_config

logger = logging.getLogger(__name__)

# Handles that have built an engine; closed once at interpreter exit.
_open_handles: "weakref.WeakSet[Database]" = weakref.WeakSet()


def close_all() -> None:
    """Dispose every engine still held by a live :class:`Database`."""

    for database in list(_open_handles):
        database.close()


atexit.register(close_all)


class Database:
    """Shared handle around a lazily constructed SQLAlchemy engine."""

    def __init__(self, environ: Mapping[str, str]) -> None:
        self._environ = dict(environ)
        self._engine: Optional[Engine] = None
        self._config: Optional[DatabaseConfig] = None
        self._lock = threading.Lock()

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "Database":
        return cls(os.environ if environ is None else environ)

    @property
    def configured(self) -> bool:
        return database_url(self._environ) is not None

    @property
    def config(self) -> DatabaseConfig:
        """Resolved configuration; raises :class:`ConfigurationError` when unusable."""

        if self._config is None:
            self._config = resolve_database_config(self._environ)
        return self._config

    @property
    def engine(self) -> Optional[Engine]:
        """Return the shared engine, or ``None`` when no URL is configured."""

        if not self.configured:
            return None

        if self._engine is None:
            with self._lock:
                if self._engine is None:
                    config = self.config
                    self._engine = create_engine(config.url, **config.engine_options())
                    _open_handles.add(self)
                    logger.info(
                        "database.engine.created",
                        extra={"ssl_mode": config.ssl_mode, "pool_size": config.pool_size},
                    )
        return self._engine

    def check_health(self) -> bool:
        """Run a liveness query against the database.

        Returns ``False`` when the query fails. A missing URL is a configuration
        problem rather than an unhealthy database and raises instead.
        """

        engine = self.engine
        if engine is None:
            raise ConfigurationError(
                "Missing database URL. Please set POSTGRES_URL or DATABASE_URL environment variable."
            )

        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.error("database.health_check.failed", exc_info=True)
            return False
        return True

    def verify_connection(self) -> None:
        """Probe connectivity once at startup and log the outcome."""

        if not self.configured:
            logger.warning("database.connection.unconfigured")
            return

        if self.check_health():
            logger.info("database.connection.established")
        else:
            logger.error("database.connection.failed")

    def close(self) -> None:
        """Dispose of the connection pool; a later ``engine`` access rebuilds it."""

        with self._lock:
            engine, self._engine = self._engine, None

        if engine is None:
            return

        try:
            engine.dispose()
        except Exception:
            logger.error("database.close.failed", exc_info=True)
            return
        logger.info("database.close.success")
