from __future__ import annotations

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from learning_bot.domain.errors import StoreError
from learning_bot.domain.models import CategoryRecord


class CategoriesRepository:
    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def list_all(self) -> list[CategoryRecord]:
        query = "SELECT id, name FROM categories ORDER BY id"
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query)
                rows = await cursor.fetchall()
        return [CategoryRecord(**row) for row in rows]

    async def get_by_id(self, category_id: int) -> CategoryRecord | None:
        query = "SELECT id, name FROM categories WHERE id = %s"
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, (category_id,))
                row = await cursor.fetchone()
        return CategoryRecord(**row) if row else None

    async def get_by_name(self, name: str) -> CategoryRecord | None:
        query = "SELECT id, name FROM categories WHERE LOWER(name) = LOWER(%s)"
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, (name.strip(),))
                row = await cursor.fetchone()
        return CategoryRecord(**row) if row else None

    async def ensure(self, name: str) -> CategoryRecord:
        query = """
        INSERT INTO categories (name)
        VALUES (%s)
        ON CONFLICT (name) DO UPDATE SET name = EXCLUDED.name
        RETURNING id, name
        """
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, (name.strip(),))
                row = await cursor.fetchone()
            await conn.commit()
        if row is None:
            raise StoreError(f"failed to upsert category {name}")
        return CategoryRecord(**row)
