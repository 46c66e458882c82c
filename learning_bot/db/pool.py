from __future__ import annotations

import logging

from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger(__name__)


class DatabasePool:
    def __init__(self, dsn: str, *, min_size: int = 1, max_size: int = 10) -> None:
        self._pool = AsyncConnectionPool(
            conninfo=dsn,
            min_size=min_size,
            max_size=max_size,
            open=False,
            kwargs={"autocommit": False},
            name="learning-bot",
        )

    @property
    def pool(self) -> AsyncConnectionPool:
        return self._pool

    async def open(self) -> None:
        await self._pool.open(wait=True)
        logger.info("Database pool opened (max_size=%s)", self._pool.max_size)

    async def ping(self) -> bool:
        async with self._pool.connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute("SELECT 1")
                row = await cursor.fetchone()
        return bool(row and row[0] == 1)

    async def close(self) -> None:
        await self._pool.close()
        logger.info("Database pool closed")
