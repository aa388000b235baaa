"""
Unit tests for PostgresUnitOfWork

Transaction boundary behaviour with a mocked psycopg2 connection.
"""
from unittest.mock import MagicMock, patch

import psycopg2
import pytest
from psycopg2 import errorcodes

from promo_quoter.core.exceptions import ConfirmTimeoutError, PersistenceError
from promo_quoter.repositories.unit_of_work import PostgresUnitOfWork, PostgresUnitOfWorkFactory


class _QueryCanceled(psycopg2.Error):
    pgcode = errorcodes.QUERY_CANCELED


@pytest.fixture
def mock_conn():
    conn = MagicMock()
    conn.closed = False
    conn.cursor.return_value = MagicMock()
    return conn


@pytest.fixture
def connect(mock_conn):
    with patch(
        'promo_quoter.repositories.unit_of_work.get_db_connection_dict_with_retry',
        return_value=mock_conn,
    ) as mock_get_conn:
        yield mock_get_conn


class TestPostgresUnitOfWork:

    def test_clean_exit_commits_and_closes(self, connect, mock_conn):
        with PostgresUnitOfWork('postgresql://test') as uow:
            assert uow.products.conn is mock_conn

        connect.assert_called_once_with('postgresql://test')
        mock_conn.commit.assert_called_once()
        mock_conn.rollback.assert_not_called()
        mock_conn.close.assert_called_once()

    def test_exception_rolls_back_and_propagates(self, connect, mock_conn):
        with pytest.raises(ValueError):
            with PostgresUnitOfWork('postgresql://test'):
                raise ValueError("boom")

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()

    def test_budget_sets_statement_and_lock_timeouts(self, connect, mock_conn):
        with PostgresUnitOfWork('postgresql://test', timeout_seconds=2.5):
            pass

        executed = mock_conn.cursor.return_value.execute.call_args_list
        assert executed[0][0] == ("SELECT set_config('statement_timeout', %s, true)", ('2500',))
        assert executed[1][0] == ("SELECT set_config('lock_timeout', %s, true)", ('2500',))

    def test_read_only_session(self, connect, mock_conn):
        with PostgresUnitOfWork('postgresql://test', read_only=True):
            pass

        mock_conn.set_session.assert_called_once_with(readonly=True)

    def test_database_error_becomes_persistence_error(self, connect, mock_conn):
        with pytest.raises(PersistenceError) as exc_info:
            with PostgresUnitOfWork('postgresql://test'):
                raise psycopg2.OperationalError("server closed the connection")

        assert not isinstance(exc_info.value, ConfirmTimeoutError)
        assert isinstance(exc_info.value.original_error, psycopg2.OperationalError)
        assert exc_info.value.message == "Failed to confirm cart"
        mock_conn.rollback.assert_called_once()

    def test_query_canceled_becomes_timeout(self, connect, mock_conn):
        with pytest.raises(ConfirmTimeoutError):
            with PostgresUnitOfWork('postgresql://test', timeout_seconds=1):
                raise _QueryCanceled("canceling statement due to statement timeout")

        mock_conn.rollback.assert_called_once()

    def test_commit_failure_rolls_back_and_closes(self, connect, mock_conn):
        mock_conn.commit.side_effect = psycopg2.OperationalError("connection lost")

        with pytest.raises(PersistenceError):
            with PostgresUnitOfWork('postgresql://test'):
                pass

        mock_conn.rollback.assert_called_once()
        mock_conn.close.assert_called_once()

    def test_spent_budget_fails_commit(self, connect, mock_conn):
        with pytest.raises(ConfirmTimeoutError):
            with PostgresUnitOfWork('postgresql://test', timeout_seconds=0):
                pass

        mock_conn.commit.assert_not_called()
        mock_conn.rollback.assert_called_once()

    def test_factory_passes_options(self, connect, mock_conn):
        factory = PostgresUnitOfWorkFactory('postgresql://test')

        uow = factory(timeout_seconds=3, read_only=True)

        assert isinstance(uow, PostgresUnitOfWork)
        assert uow.timeout_seconds == 3
        assert uow.read_only is True
        assert uow.database_url == 'postgresql://test'
