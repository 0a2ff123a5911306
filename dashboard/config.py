"""Environment-driven database configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError


SSL_MODES = ("require", "prefer", "allow", "disable")

IDLE_TIMEOUT_SECONDS = 20
CONNECT_TIMEOUT_SECONDS = 10


class ConfigurationError(RuntimeError):
    """Raised when the process environment cannot produce a usable database config."""


def _getenv(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _bool_from_env(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    value = environ.get(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def is_production(environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    flask_env = (environ.get("FLASK_ENV") or "").lower()
    node_env = (environ.get("NODE_ENV") or "").lower()
    is_vercel = _bool_from_env(environ, "VERCEL", False) or bool(environ.get("VERCEL_ENV"))
    return flask_env in {"production", "prod"} or node_env == "production" or is_vercel


def database_url(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the configured connection URL, or ``None`` when neither variable is set.

    ``POSTGRES_URL`` wins over ``DATABASE_URL``. Hosted Postgres providers still
    hand out ``postgres://`` URLs, which SQLAlchemy refuses, so the scheme is
    rewritten to ``postgresql://``.
    """

    environ = os.environ if environ is None else environ
    url = _getenv(environ, "POSTGRES_URL") or _getenv(environ, "DATABASE_URL")
    if url and url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    ssl_mode: str
    pool_size: int
    production: bool
    idle_timeout: int = IDLE_TIMEOUT_SECONDS
    connect_timeout: int = CONNECT_TIMEOUT_SECONDS

    @property
    def is_postgres(self) -> bool:
        return make_url(self.url).get_backend_name() == "postgresql"

    @property
    def is_sqlite_memory(self) -> bool:
        url = make_url(self.url)
        return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for :func:`sqlalchemy.create_engine`."""

        options: Dict[str, Any] = {
            # SQLAlchemy has no idle reaper; recycling on checkout is the closest match.
            "pool_recycle": self.idle_timeout,
            "pool_pre_ping": True,
        }
        # In-memory SQLite runs on SingletonThreadPool, which takes no sizing arguments.
        if not self.is_sqlite_memory:
            options["pool_size"] = self.pool_size
            options["max_overflow"] = 0
        if self.is_postgres:
            options["connect_args"] = {
                "sslmode": self.ssl_mode,
                "connect_timeout": self.connect_timeout,
            }
        return options


def resolve_database_config(environ: Optional[Mapping[str, str]] = None) -> DatabaseConfig:
    """Build the database configuration or raise :class:`ConfigurationError`.

    A missing URL is a fatal startup condition, not a per-request one.
    """

    environ = os.environ if environ is None else environ

    url = database_url(environ)
    if not url:
        raise ConfigurationError(
            "Missing database URL. Please set POSTGRES_URL or DATABASE_URL environment variable."
        )

    try:
        make_url(url)
    except ArgumentError as exc:
        raise ConfigurationError("Could not parse the database URL set in POSTGRES_URL or DATABASE_URL.") from exc

    production = is_production(environ)

    ssl_mode = (_getenv(environ, "POSTGRES_SSL_MODE") or ("require" if production else "prefer")).lower()
    if ssl_mode not in SSL_MODES:
        raise ConfigurationError(
            f"Invalid POSTGRES_SSL_MODE {ssl_mode!r}; expected one of: {', '.join(SSL_MODES)}."
        )

    return DatabaseConfig(
        url=url,
        ssl_mode=ssl_mode,
        pool_size=20 if production else 10,
        production=production,
    )
