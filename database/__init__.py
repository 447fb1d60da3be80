"""Database module providing the keyed document store.

This module handles:
- Connection pool creation for PostgreSQL/CockroachDB
- Schema management
- Construction of the DocumentStore used by every registry
"""

import logging
import ssl
from typing import Optional, Dict, Any
from urllib.parse import urlparse, parse_qs

import asyncpg
import backoff

from .exceptions import DatabaseError, StoreError, DuplicateKeyError, DatabaseSchemaError
from .lib.schema_manager import SchemaManager
from .store import (
    DocumentStore, MemoryDocumentStore, DEFAULT_TIMEOUT, COLLECTIONS,
    TRUSTED_SOURCES, BLACKLIST, CONTENT, RECENT_DATA, EXTENDED_HISTORY, EXTRA_DATA
)
from .postgres import PostgresDocumentStore

logger = logging.getLogger(__name__)


def _get_ssl_context() -> ssl.SSLContext:
    """Create SSL context for CockroachDB Cloud connections."""
    ssl_context = ssl.create_default_context()
    ssl_context.verify_mode = ssl.CERT_REQUIRED
    ssl_context.check_hostname = True
    return ssl_context


def _get_connection_kwargs(db_url: str, timeout: float) -> Dict[str, Any]:
    """Get connection kwargs from database URL.

    Args:
        db_url: Database connection URL
        timeout: Statement timeout in seconds

    Returns:
        Dict of connection parameters
    """
    parsed = urlparse(db_url)
    params = parse_qs(parsed.query)

    kwargs: Dict[str, Any] = {
        'server_settings': {
            'statement_timeout': str(int(timeout * 1000)),
        }
    }

    if params.get('sslmode', ['require'])[0] != 'disable':
        kwargs['ssl'] = _get_ssl_context()

    return kwargs


@backoff.on_exception(
    backoff.expo,
    (asyncpg.exceptions.PostgresConnectionError, asyncpg.exceptions.CannotConnectNowError, OSError),
    max_tries=5
)
async def create_database_if_not_exists(db_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
    """Create the database named in the URL if it doesn't exist.

    Args:
        db_url: Database connection URL
        timeout: Statement timeout in seconds
    """
    parsed = urlparse(db_url)
    db_name = parsed.path.strip('/') or 'defaultdb'
    if db_name == 'defaultdb':
        return

    base_url = parsed._replace(path='/defaultdb').geturl()
    logger.info(f"Connecting to defaultdb to create {db_name} if needed")

    conn = await asyncpg.connect(base_url, **_get_connection_kwargs(base_url, timeout))
    try:
        await conn.execute(f'CREATE DATABASE IF NOT EXISTS "{db_name}"')
    finally:
        await conn.close()


@backoff.on_exception(
    backoff.expo,
    (asyncpg.exceptions.PostgresConnectionError, asyncpg.exceptions.CannotConnectNowError, OSError),
    max_tries=5
)
async def create_pool(db_url: str, timeout: float = DEFAULT_TIMEOUT) -> asyncpg.Pool:
    """Create a connection pool and bring the schema up to date.

    Args:
        db_url: Database connection URL
        timeout: Command timeout in seconds

    Returns:
        The initialized pool

    Raises:
        DatabaseSchemaError: If schema initialization fails
    """
    await create_database_if_not_exists(db_url, timeout)

    pool = await asyncpg.create_pool(
        db_url,
        min_size=2,
        max_size=20,
        max_queries=10000,
        max_inactive_connection_lifetime=300.0,
        command_timeout=timeout,
        **_get_connection_kwargs(db_url, timeout)
    )

    try:
        await SchemaManager(pool).initialize()
    except Exception:
        await pool.close()
        raise

    return pool


async def open_store(
    backend: str = 'postgres',
    db_url: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT
) -> DocumentStore:
    """Open the document store selected by configuration.

    Args:
        backend: ``postgres`` or ``memory``
        db_url: Database URL, required for the postgres backend
        timeout: Per-call timeout in seconds

    Returns:
        A started DocumentStore

    Raises:
        ValueError: If the backend is unknown or the URL is missing
    """
    if backend == 'memory':
        logger.info("Using in-memory document store")
        store: DocumentStore = MemoryDocumentStore(timeout=timeout)
    elif backend == 'postgres':
        if not db_url:
            raise ValueError("Database URL not provided")
        try:
            pool = await create_pool(db_url, timeout)
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise
        store = PostgresDocumentStore(pool, timeout=timeout)
    else:
        raise ValueError(f"Unknown store backend: {backend}")

    await store.start()
    return store


__all__ = [
    'open_store', 'create_pool', 'SchemaManager',
    'DocumentStore', 'MemoryDocumentStore', 'PostgresDocumentStore',
    'DatabaseError', 'StoreError', 'DuplicateKeyError', 'DatabaseSchemaError',
    'DEFAULT_TIMEOUT', 'COLLECTIONS',
    'TRUSTED_SOURCES', 'BLACKLIST', 'CONTENT', 'RECENT_DATA', 'EXTENDED_HISTORY', 'EXTRA_DATA',
]
