"""
PostgreSQL connection helpers

All repositories share connections opened here. Rows are returned as
dictionaries (RealDictCursor) so that the hand-written mappers in the
repository layer can read columns by name.
"""
import logging
import time
from typing import Optional

import psycopg2
from psycopg2.extras import RealDictCursor

from promo_quoter.core.config import settings

logger = logging.getLogger(__name__)


def _resolve_database_url(database_url: Optional[str]) -> str:
    url = database_url or settings.DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL not configured")
    return url


def get_db_connection_dict_with_retry(
    database_url: Optional[str] = None,
    max_retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
):
    """
    Get a psycopg2 connection with RealDictCursor and automatic retry

    Retries only on psycopg2.OperationalError (network/SSL drops), with
    exponential backoff between attempts. Any other error fails immediately.

    Args:
        database_url: Override for settings.DATABASE_URL
        max_retries: Maximum number of connection attempts (default from settings)
        retry_delay: Initial delay between retries in seconds (default from settings)

    Returns:
        psycopg2 connection with RealDictCursor and autocommit disabled

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    url = _resolve_database_url(database_url)
    max_retries = max_retries if max_retries is not None else settings.DB_CONNECT_MAX_RETRIES
    retry_delay = retry_delay if retry_delay is not None else settings.DB_CONNECT_RETRY_DELAY

    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(url, cursor_factory=RealDictCursor)
            conn.autocommit = False
            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")

    raise last_error if last_error else RuntimeError("Connection failed after all retries")


def ping(database_url: Optional[str] = None) -> float:
    """
    Run SELECT 1 on a fresh connection

    Returns:
        Query latency in milliseconds
    """
    conn = get_db_connection_dict_with_retry(database_url, max_retries=1)
    cursor = conn.cursor()

    try:
        start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        return round((time.time() - start) * 1000, 2)
    finally:
        cursor.close()
        conn.close()
