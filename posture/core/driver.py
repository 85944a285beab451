"""
Database driver adapter for the connection probe.

Wraps asyncpg behind the small pool/connection surface the probe consumes,
so the probe can be exercised against any object with the same shape.
"""

from __future__ import annotations

import ssl
from typing import Any, Dict, List, Optional

import asyncpg


def create_verifying_context(cafile: Optional[str] = None) -> ssl.SSLContext:
    """TLS context that always validates the chain and the hostname."""
    context = ssl.create_default_context(cafile=cafile)
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


class PostgresConnection:
    """Acquired connection; ``release`` returns it to its pool."""

    def __init__(self, pool: asyncpg.Pool, connection: asyncpg.Connection):
        self._pool = pool
        self._connection = connection
        self._released = False

    async def query(self, sql: str) -> List[Dict[str, Any]]:
        records = await self._connection.fetch(sql)
        return [dict(record) for record in records]

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        await self._pool.release(self._connection)


class PostgresPool:
    def __init__(self, dsn: str, ssl_context: ssl.SSLContext, timeout: float):
        self._dsn = dsn
        self._ssl_context = ssl_context
        self._timeout = timeout
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> PostgresConnection:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                ssl=self._ssl_context,
                min_size=0,
                max_size=1,
                timeout=self._timeout,
            )
        connection = await self._pool.acquire()
        return PostgresConnection(self._pool, connection)

    async def end(self) -> None:
        if self._pool is not None:
            pool, self._pool = self._pool, None
            await pool.close()


class PostgresDriver:
    """Creates verifying asyncpg pools for the probe."""

    def __init__(self, cafile: Optional[str] = None, connect_timeout: float = 30.0):
        self.cafile = cafile
        self.connect_timeout = connect_timeout

    def create_pool(self, url: str) -> PostgresPool:
        return PostgresPool(url, create_verifying_context(self.cafile), self.connect_timeout)
