"""Document store backed by PostgreSQL/CockroachDB through asyncpg.

Each logical collection maps to a table of ``(key TEXT PRIMARY KEY, doc
JSONB)`` rows. Merges, counters and array appends are expressed as a single
``INSERT ... ON CONFLICT (key) DO UPDATE`` statement so every write is
atomic for its key without any application-side locking.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import asyncpg

from .exceptions import DuplicateKeyError, StoreError
from .store import (
    DocumentStore, DEFAULT_TIMEOUT,
    TRUSTED_SOURCES, BLACKLIST, CONTENT, RECENT_DATA, EXTENDED_HISTORY, EXTRA_DATA
)

logger = logging.getLogger(__name__)

TABLES = {
    TRUSTED_SOURCES: 'trusted_sources',
    BLACKLIST: 'blacklist',
    CONTENT: 'content',
    RECENT_DATA: 'recent_data',
    EXTENDED_HISTORY: 'extended_history',
    EXTRA_DATA: 'extra_data',
}

_FIELD_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def _decode(value) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


class PostgresDocumentStore(DocumentStore):
    """DocumentStore implementation on an asyncpg connection pool."""

    def __init__(self, pool: asyncpg.Pool, timeout: float = DEFAULT_TIMEOUT):
        """Initialize the store.

        Args:
            pool: An initialized asyncpg pool whose schema is up to date
            timeout: Per-call timeout in seconds
        """
        super().__init__(timeout)
        self.pool = pool

    async def close(self) -> None:
        await self.pool.close()

    async def _run(self, collection: str, method: str, query: str, *args):
        """Execute a query on a pooled connection, translating driver errors."""
        try:
            async with self.pool.acquire() as conn:
                return await getattr(conn, method)(query, *args, timeout=self.timeout)
        except asyncpg.exceptions.UniqueViolationError as e:
            raise DuplicateKeyError(str(e), collection)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"Store operation on {collection} failed: {e}")
            raise StoreError(str(e), collection)

    async def _find_one(self, collection, key):
        value = await self._run(
            collection, 'fetchval',
            f'SELECT doc FROM {TABLES[collection]} WHERE key = $1',
            key
        )
        return _decode(value)

    async def _find_many(self, collection, keys):
        if not keys:
            return []
        rows = await self._run(
            collection, 'fetch',
            f'SELECT key, doc FROM {TABLES[collection]} WHERE key = ANY($1::TEXT[])',
            keys
        )
        found = {row['key']: _decode(row['doc']) for row in rows}
        return [found[key] for key in keys if key in found]

    async def _find(self, collection, where, sort, descending, limit):
        query = f'SELECT doc FROM {TABLES[collection]} WHERE doc @> $1::JSONB'
        args: List[Any] = [json.dumps(where)]

        if sort:
            if not _FIELD_NAME.match(sort):
                raise StoreError(f"Invalid sort field: {sort}", collection)
            query += f" ORDER BY doc->'{sort}' {'DESC' if descending else 'ASC'} NULLS LAST"

        if limit is not None:
            args.append(limit)
            query += f' LIMIT ${len(args)}'

        rows = await self._run(collection, 'fetch', query, *args)
        return [_decode(row['doc']) for row in rows]

    async def _insert(self, collection, key, document):
        await self._run(
            collection, 'execute',
            f'INSERT INTO {TABLES[collection]} (key, doc) VALUES ($1, $2::JSONB)',
            key,
            json.dumps(document)
        )

    async def _upsert(self, collection, key, fields, on_insert):
        table = TABLES[collection]
        value = await self._run(
            collection, 'fetchval',
            f'''
            INSERT INTO {table} AS t (key, doc)
            VALUES ($1, $2::JSONB || $3::JSONB)
            ON CONFLICT (key) DO UPDATE
            SET doc = t.doc || $3::JSONB,
                updated_at = now()
            RETURNING doc
            ''',
            key,
            json.dumps(on_insert),
            json.dumps(fields)
        )
        return _decode(value)

    async def _increment(self, collection, key, field, amount, on_insert):
        table = TABLES[collection]
        value = await self._run(
            collection, 'fetchval',
            f'''
            INSERT INTO {table} AS t (key, doc)
            VALUES ($1, $2::JSONB || jsonb_build_object($3::TEXT, $4::INT8))
            ON CONFLICT (key) DO UPDATE
            SET doc = t.doc || jsonb_build_object(
                    $3::TEXT, COALESCE((t.doc->>$3::TEXT)::INT8, 0) + $4::INT8
                ),
                updated_at = now()
            RETURNING (doc->>$3::TEXT)::INT8
            ''',
            key,
            json.dumps(on_insert),
            field,
            amount
        )
        return int(value)

    async def _append(self, collection, key, field, items, fields, on_insert):
        table = TABLES[collection]
        await self._run(
            collection, 'execute',
            f'''
            INSERT INTO {table} AS t (key, doc)
            VALUES (
                $1,
                $2::JSONB || $3::JSONB || jsonb_build_object($4::TEXT, $5::JSONB)
            )
            ON CONFLICT (key) DO UPDATE
            SET doc = t.doc || $3::JSONB || jsonb_build_object(
                    $4::TEXT, COALESCE(t.doc->$4::TEXT, '[]'::JSONB) || $5::JSONB
                ),
                updated_at = now()
            ''',
            key,
            json.dumps(on_insert),
            json.dumps(fields),
            field,
            json.dumps(items)
        )
