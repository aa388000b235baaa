"""
Unit of Work - transaction boundary shared by all repositories

A unit of work owns one transaction. Repositories reached through it
(`uow.products`, `uow.promotions`, `uow.orders`) all read and write inside
that transaction, and every row lock they take is released when it ends.

Usage:
    with uow_factory(timeout_seconds=30) as uow:
        product = uow.products.find_by_id_for_update(product_id)
        ...
    # clean exit commits, an exception rolls back and propagates

A unit of work may carry an execution budget. Once it is spent,
check_deadline() raises ConfirmTimeoutError and the transaction rolls back
like any other failure.
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

import psycopg2
from psycopg2 import errorcodes

from promo_quoter.core.database import get_db_connection_dict_with_retry
from promo_quoter.core.exceptions import ConfirmTimeoutError, PersistenceError
from promo_quoter.repositories.order_repository import OrderRepository
from promo_quoter.repositories.product_repository import ProductRepository
from promo_quoter.repositories.promotion_repository import PromotionRepository

logger = logging.getLogger(__name__)


class UnitOfWork(ABC):
    """Base class: deadline tracking and commit/rollback bookkeeping"""

    def __init__(self, timeout_seconds: Optional[float] = None, read_only: bool = False):
        self.timeout_seconds = timeout_seconds
        self.read_only = read_only
        self._deadline: Optional[float] = None
        self._finished = False

    def __enter__(self):
        if self.timeout_seconds is not None:
            self._deadline = time.monotonic() + self.timeout_seconds
        self._finished = False
        self._begin()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
            return False
        if not self._finished:
            self.commit()
        return False

    def remaining_seconds(self) -> Optional[float]:
        """Seconds left in the budget, or None when unbounded"""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def check_deadline(self) -> None:
        """Raise ConfirmTimeoutError once the budget is spent"""
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise ConfirmTimeoutError(self.timeout_seconds)

    def commit(self) -> None:
        if self._finished:
            return
        try:
            self.check_deadline()
            self._commit()
        except Exception:
            self._rollback()
            raise
        finally:
            self._finished = True

    def rollback(self) -> None:
        if self._finished:
            return
        try:
            self._rollback()
        finally:
            self._finished = True

    @abstractmethod
    def _begin(self) -> None: ...

    @abstractmethod
    def _commit(self) -> None: ...

    @abstractmethod
    def _rollback(self) -> None: ...


# Postgres error codes that mean the transaction ran out of time
_TIMEOUT_CODES = {errorcodes.QUERY_CANCELED, errorcodes.LOCK_NOT_AVAILABLE}


class PostgresUnitOfWork(UnitOfWork):
    """
    Unit of work over a single psycopg2 connection

    The budget is pushed down to Postgres as statement_timeout and
    lock_timeout so that a blocked FOR UPDATE cannot outlive it.
    psycopg2 errors leave this boundary as PersistenceError.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        read_only: bool = False,
    ):
        super().__init__(timeout_seconds=timeout_seconds, read_only=read_only)
        self.database_url = database_url
        self.conn = None

    def __enter__(self):
        try:
            return super().__enter__()
        except psycopg2.Error as e:
            self._close()
            raise self._translate(e) from e

    def __exit__(self, exc_type, exc, tb):
        try:
            super().__exit__(exc_type, exc, tb)
        except psycopg2.Error as commit_error:
            raise self._translate(commit_error) from commit_error
        finally:
            self._close()
        if exc_type is not None and issubclass(exc_type, psycopg2.Error):
            raise self._translate(exc) from exc
        return False

    def _begin(self) -> None:
        self.conn = get_db_connection_dict_with_retry(self.database_url)
        if self.read_only:
            self.conn.set_session(readonly=True)

        self.products = ProductRepository(self.conn)
        self.promotions = PromotionRepository(self.conn)
        self.orders = OrderRepository(self.conn)

        if self.timeout_seconds is not None:
            budget_ms = int(self.timeout_seconds * 1000)
            cursor = self.conn.cursor()
            try:
                cursor.execute("SELECT set_config('statement_timeout', %s, true)", (str(budget_ms),))
                cursor.execute("SELECT set_config('lock_timeout', %s, true)", (str(budget_ms),))
            finally:
                cursor.close()

    def _commit(self) -> None:
        self.conn.commit()

    def _rollback(self) -> None:
        if self.conn is None or self.conn.closed:
            return
        try:
            self.conn.rollback()
        except psycopg2.Error as e:
            logger.error(f"Rollback failed: {e}")

    def _close(self) -> None:
        if self.conn is not None and not self.conn.closed:
            self.conn.close()

    def _translate(self, error: psycopg2.Error) -> PersistenceError:
        if getattr(error, "pgcode", None) in _TIMEOUT_CODES:
            logger.error(f"Transaction exceeded its {self.timeout_seconds}s budget: {error}")
            return ConfirmTimeoutError(self.timeout_seconds or 0)
        logger.error(f"Database error, transaction rolled back: {error}")
        return PersistenceError(original_error=error)


class PostgresUnitOfWorkFactory:
    """Callable producing PostgresUnitOfWork instances for one database"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url

    def __call__(self, timeout_seconds: Optional[float] = None, read_only: bool = False) -> PostgresUnitOfWork:
        return PostgresUnitOfWork(self.database_url, timeout_seconds=timeout_seconds, read_only=read_only)
