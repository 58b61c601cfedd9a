"""Unit tests for ConnectionPool."""

from unittest.mock import MagicMock, patch

import psycopg2
import pytest
from psycopg2 import pool as psycopg2_pool
from pydantic import SecretStr

from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.settings import DatabaseSettings

POOL_CLASS = "infrastructure.database.connection_pool.psycopg2_pool.ThreadedConnectionPool"


@pytest.fixture
def mock_db_settings():
    """Create mock database settings."""
    return DatabaseSettings(
        host="localhost",
        port=5432,
        database="test_db",
        username="test_user",
        password=SecretStr("test_pass"),
        pool_min_connections=2,
        pool_max_connections=5,
        pool_enabled=True,
    )


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_pool_initializes_with_settings(self, mock_db_settings):
        """Should create ThreadedConnectionPool on init."""
        with patch(POOL_CLASS) as mock_pool_class:
            pool = ConnectionPool(mock_db_settings)

            mock_pool_class.assert_called_once_with(
                minconn=2,
                maxconn=5,
                host="localhost",
                port=5432,
                dbname="test_db",
                user="test_user",
                password="test_pass",
            )
            assert pool.is_initialized

    def test_initialization_reported_to_probe(self, mock_db_settings):
        probe = MagicMock()
        with patch(POOL_CLASS):
            ConnectionPool(mock_db_settings, probe=probe)

        probe.pool_initialized.assert_called_once_with(
            target="postgresql://test_user@localhost:5432/test_db",
            min_conn=2,
            max_conn=5,
            statement_timeout_ms=0,
        )

    def test_statement_timeout_passed_as_connection_option(self, mock_db_settings):
        """Should open every pooled connection with the statement timeout."""
        mock_db_settings.statement_timeout_ms = 2500
        with patch(POOL_CLASS) as mock_pool_class:
            ConnectionPool(mock_db_settings)

            kwargs = mock_pool_class.call_args.kwargs
            assert kwargs["options"] == "-c statement_timeout=2500"

    def test_pool_not_initialized_when_disabled(self, mock_db_settings):
        """Should not create pool when pool_enabled=False."""
        mock_db_settings.pool_enabled = False
        pool = ConnectionPool(mock_db_settings)

        assert not pool.is_initialized

    def test_initialization_failure_raises_connection_error(self, mock_db_settings):
        """Should wrap driver errors and report them to the probe."""
        probe = MagicMock()
        with patch(POOL_CLASS, side_effect=psycopg2.OperationalError("refused")):
            with pytest.raises(DatabaseConnectionError) as exc_info:
                ConnectionPool(mock_db_settings, probe=probe)

        assert "refused" in str(exc_info.value)
        probe.pool_initialization_failed.assert_called_once_with(
            target="postgresql://test_user@localhost:5432/test_db",
            error=probe.pool_initialization_failed.call_args.kwargs["error"],
        )


class TestGetConnection:
    """Tests for get_connection method."""

    def test_raises_when_pool_not_initialized(self, mock_db_settings):
        """Should raise error if pool not initialized."""
        mock_db_settings.pool_enabled = False
        pool = ConnectionPool(mock_db_settings)

        with pytest.raises(DatabaseConnectionError) as exc_info:
            pool.get_connection()

        assert "not initialized" in str(exc_info.value)

    def test_gets_connection_from_pool(self, mock_db_settings):
        """Should get connection from pool."""
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_instance = MagicMock()
            mock_conn = MagicMock()
            mock_pool_instance.getconn.return_value = mock_conn
            mock_pool_class.return_value = mock_pool_instance

            pool = ConnectionPool(mock_db_settings)
            conn = pool.get_connection()

            mock_pool_instance.getconn.assert_called_once()
            assert conn == mock_conn

    def test_exhausted_pool_raises_connection_error(self, mock_db_settings):
        """Should translate PoolError and report exhaustion."""
        probe = MagicMock()
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_class.return_value.getconn.side_effect = psycopg2_pool.PoolError(
                "connection pool exhausted"
            )
            pool = ConnectionPool(mock_db_settings, probe=probe)

            with pytest.raises(DatabaseConnectionError):
                pool.get_connection()

        probe.pool_exhausted.assert_called_once_with(max_conn=5)


class TestReturnConnection:
    """Tests for return_connection method."""

    def test_returns_connection_to_pool(self, mock_db_settings):
        """Should return connection to pool."""
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_instance = MagicMock()
            mock_conn = MagicMock()
            mock_pool_class.return_value = mock_pool_instance

            pool = ConnectionPool(mock_db_settings)
            pool.return_connection(mock_conn)

            mock_pool_instance.putconn.assert_called_once_with(mock_conn)

    def test_handles_return_when_pool_not_initialized(self, mock_db_settings):
        """Should not raise when returning to uninitialized pool."""
        mock_db_settings.pool_enabled = False
        pool = ConnectionPool(mock_db_settings)

        # Should not raise
        pool.return_connection(MagicMock())

    def test_failed_return_closes_connection_and_reports(self, mock_db_settings):
        probe = MagicMock()
        conn = MagicMock(closed=0)
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_class.return_value.putconn.side_effect = psycopg2_pool.PoolError(
                "unkeyed connection"
            )
            pool = ConnectionPool(mock_db_settings, probe=probe)

            pool.return_connection(conn)

        probe.connection_return_failed.assert_called_once()
        conn.close.assert_called_once()

    def test_failed_return_skips_close_of_closed_connection(self, mock_db_settings):
        conn = MagicMock(closed=1)
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_class.return_value.putconn.side_effect = psycopg2_pool.PoolError(
                "unkeyed connection"
            )
            pool = ConnectionPool(mock_db_settings, probe=MagicMock())

            pool.return_connection(conn)

        conn.close.assert_not_called()


class TestConnectionContextManager:
    """Tests for the connection() context manager."""

    def test_returns_connection_after_block(self, mock_db_settings):
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_instance = MagicMock()
            mock_conn = MagicMock()
            mock_pool_instance.getconn.return_value = mock_conn
            mock_pool_class.return_value = mock_pool_instance

            pool = ConnectionPool(mock_db_settings)
            with pool.connection() as conn:
                assert conn is mock_conn

            mock_pool_instance.putconn.assert_called_once_with(mock_conn)

    def test_returns_connection_when_block_raises(self, mock_db_settings):
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_instance = MagicMock()
            mock_conn = MagicMock()
            mock_pool_instance.getconn.return_value = mock_conn
            mock_pool_class.return_value = mock_pool_instance

            pool = ConnectionPool(mock_db_settings)
            with pytest.raises(RuntimeError):
                with pool.connection():
                    raise RuntimeError("boom")

            mock_pool_instance.putconn.assert_called_once_with(mock_conn)


class TestCloseAll:
    """Tests for close_all method."""

    def test_closes_all_connections(self, mock_db_settings):
        """Should close all connections in pool."""
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_instance = MagicMock()
            mock_pool_class.return_value = mock_pool_instance

            pool = ConnectionPool(mock_db_settings)
            pool.close_all()

            mock_pool_instance.closeall.assert_called_once()

    def test_nullifies_pool_after_close(self, mock_db_settings):
        """Should mark the pool uninitialized after closing."""
        with patch(POOL_CLASS):
            pool = ConnectionPool(mock_db_settings)
            pool.close_all()

            assert not pool.is_initialized
