from __future__ import annotations

import logging
from unittest import TestCase
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from dashboard.config import ConfigurationError
from dashboard.database import Database, close_all
from tests.helpers import PG_URL


def _engine_with_connection(connection: MagicMock) -> MagicMock:
    engine = MagicMock()
    engine.connect.return_value.__enter__.return_value = connection
    engine.connect.return_value.__exit__.return_value = False
    return engine


class DatabaseEngineTests(TestCase):
    def test_no_url_means_no_engine(self) -> None:
        database = Database({})

        with patch("dashboard.database.create_engine") as mock_create_engine:
            self.assertIsNone(database.engine)

        self.assertFalse(database.configured)
        mock_create_engine.assert_not_called()

    def test_engine_is_created_once(self) -> None:
        database = Database({"POSTGRES_URL": PG_URL})

        with patch("dashboard.database.create_engine") as mock_create_engine:
            first = database.engine
            second = database.engine

        self.assertIs(first, second)
        mock_create_engine.assert_called_once()
        args, kwargs = mock_create_engine.call_args
        self.assertEqual(PG_URL, args[0])
        self.assertEqual(10, kwargs["pool_size"])
        self.assertEqual({"sslmode": "prefer", "connect_timeout": 10}, kwargs["connect_args"])

    def test_environment_is_captured_at_construction(self) -> None:
        environ = {"POSTGRES_URL": PG_URL}
        database = Database(environ)
        environ.pop("POSTGRES_URL")

        self.assertTrue(database.configured)

    def test_invalid_ssl_mode_surfaces_on_first_use(self) -> None:
        database = Database({"POSTGRES_URL": PG_URL, "POSTGRES_SSL_MODE": "sometimes"})

        with patch("dashboard.database.create_engine") as mock_create_engine:
            with self.assertRaises(ConfigurationError):
                database.engine

        mock_create_engine.assert_not_called()


class DatabaseHealthTests(TestCase):
    def test_health_check_success(self) -> None:
        connection = MagicMock()
        database = Database({"POSTGRES_URL": PG_URL})

        with patch("dashboard.database.create_engine", return_value=_engine_with_connection(connection)):
            self.assertTrue(database.check_health())

        self.assertEqual("SELECT 1", str(connection.execute.call_args.args[0]))

    def test_health_check_failure_returns_false(self) -> None:
        connection = MagicMock()
        connection.execute.side_effect = OperationalError("SELECT 1", {}, Exception("timeout"))
        database = Database({"POSTGRES_URL": PG_URL})

        with patch("dashboard.database.create_engine", return_value=_engine_with_connection(connection)):
            with self.assertLogs("dashboard.database", level=logging.ERROR) as logs:
                self.assertFalse(database.check_health())

        self.assertIn("database.health_check.failed", logs.output[0])

    def test_health_check_without_url_raises(self) -> None:
        with self.assertRaises(ConfigurationError):
            Database({}).check_health()

    def test_verify_connection_logs_outcome(self) -> None:
        database = Database({"POSTGRES_URL": PG_URL})

        with patch("dashboard.database.create_engine", return_value=_engine_with_connection(MagicMock())):
            with self.assertLogs("dashboard.database", level=logging.INFO) as logs:
                database.verify_connection()

        self.assertTrue(any("database.connection.established" in line for line in logs.output))

    def test_verify_connection_does_not_raise_when_unreachable(self) -> None:
        connection = MagicMock()
        connection.execute.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
        database = Database({"POSTGRES_URL": PG_URL})

        with patch("dashboard.database.create_engine", return_value=_engine_with_connection(connection)):
            with self.assertLogs("dashboard.database", level=logging.ERROR) as logs:
                database.verify_connection()

        self.assertTrue(any("database.connection.failed" in line for line in logs.output))


class DatabaseCloseTests(TestCase):
    def test_close_disposes_and_allows_rebuild(self) -> None:
        database = Database({"POSTGRES_URL": PG_URL})

        with patch("dashboard.database.create_engine", side_effect=[MagicMock(), MagicMock()]):
            engine = database.engine
            database.close()
            rebuilt = database.engine

        engine.dispose.assert_called_once()
        self.assertIsNot(engine, rebuilt)

    def test_close_without_engine_is_noop(self) -> None:
        Database({}).close()

    def test_close_swallows_dispose_errors(self) -> None:
        database = Database({"POSTGRES_URL": PG_URL})

        with patch("dashboard.database.create_engine") as mock_create_engine:
            mock_create_engine.return_value.dispose.side_effect = RuntimeError("boom")
            database.engine
            with self.assertLogs("dashboard.database", level=logging.ERROR) as logs:
                database.close()

        self.assertIn("database.close.failed", logs.output[0])

    def test_close_all_disposes_every_built_engine(self) -> None:
        first = Database({"POSTGRES_URL": PG_URL})
        second = Database({"POSTGRES_URL": PG_URL})
        idle = Database({"POSTGRES_URL": PG_URL})

        with patch("dashboard.database.create_engine", side_effect=[MagicMock(), MagicMock()]):
            first_engine = first.engine
            second_engine = second.engine

        close_all()

        first_engine.dispose.assert_called_once()
        second_engine.dispose.assert_called_once()
        self.assertIsNone(idle._engine)

        # A second pass finds nothing left to dispose.
        close_all()
        first_engine.dispose.assert_called_once()
