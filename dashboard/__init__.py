"""Flask application factory."""

import logging
import os

from dotenv import load_dotenv
from flask import Flask

from .config import ConfigurationError, is_production
from .database import Database

logger = logging.getLogger(__name__)


def _bool_from_env(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def create_app() -> Flask:
    """Configure and return the Flask application."""

    load_dotenv()

    app = Flask(__name__)

    production = is_production(os.environ)

    # One handle per process; query functions receive it explicitly through
    # ``current_app.database`` instead of importing a module-level client.
    database = Database.from_environ(os.environ)

    if database.configured:
        # Surfaces an invalid POSTGRES_SSL_MODE on cold start rather than mid-request.
        config = database.config
        logger.info(
            "app.database.configured",
            extra={"ssl_mode": config.ssl_mode, "pool_size": config.pool_size},
        )
    elif production:
        raise ConfigurationError(
            "Missing database URL. Please set POSTGRES_URL or DATABASE_URL environment variable."
        )
    else:
        logger.warning("app.database.unconfigured")

    app.database = database

    if database.configured and _bool_from_env("DATABASE_VERIFY_ON_STARTUP", production):
        database.verify_connection()

    from .routes import main_bp

    app.register_blueprint(main_bp)

    return app
