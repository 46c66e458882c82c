from __future__ import annotations

import random
from datetime import datetime
from typing import Any

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from learning_bot.constants import GENERATION_WORD_LIMIT, SYSTEM_USER_ID
from learning_bot.domain.errors import StoreError
from learning_bot.domain.models import WordRecord

_WORD_COLUMNS = """
    w.id,
    w.text,
    w.translation,
    w.category_id,
    c.name AS category,
    w.user_id,
    w.is_custom,
    w.created_at,
    w.updated_at
"""

_WORDS_FROM = "FROM words w LEFT JOIN categories c ON c.id = w.category_id"

_NOT_LEARNED = """
NOT EXISTS (
    SELECT 1 FROM user_learned_words l
    WHERE l.user_id = %(user_id)s AND l.word_id = w.id
)
"""

_NOT_VIEWED = """
NOT EXISTS (
    SELECT 1 FROM user_viewed_words v
    WHERE v.user_id = %(user_id)s AND v.word_id = w.id
)
"""


def _to_word(row: dict[str, Any]) -> WordRecord:
    return WordRecord(
        id=row["id"],
        text=row["text"],
        translation=row["translation"],
        category_id=row["category_id"],
        category=row["category"],
        user_id=row["user_id"],
        is_custom=row["is_custom"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class WordsRepository:
    def __init__(self, pool: AsyncConnectionPool, *, rng: random.Random | None = None) -> None:
        self._pool = pool
        self._rng = rng or random.Random()

    async def get_by_id(self, word_id: int) -> WordRecord | None:
        query = f"SELECT {_WORD_COLUMNS} {_WORDS_FROM} WHERE w.id = %s"
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, (word_id,))
                row = await cursor.fetchone()
        return _to_word(row) if row else None

    async def list_all(self) -> list[WordRecord]:
        query = f"""
        SELECT {_WORD_COLUMNS} {_WORDS_FROM}
        WHERE w.is_custom = FALSE
        ORDER BY w.id
        """
        return await self._fetch_words(query, {})

    async def list_by_category(self, category_id: int) -> list[WordRecord]:
        query = f"""
        SELECT {_WORD_COLUMNS} {_WORDS_FROM}
        WHERE w.is_custom = FALSE AND w.category_id = %(category_id)s
        ORDER BY w.id
        """
        return await self._fetch_words(query, {"category_id": category_id})

    async def list_learned(self, user_id: int, category_id: int | None = None) -> list[WordRecord]:
        query = f"""
        SELECT {_WORD_COLUMNS}
        FROM user_learned_words l
        JOIN words w ON w.id = l.word_id
        LEFT JOIN categories c ON c.id = w.category_id
        WHERE l.user_id = %(user_id)s
          AND (%(category_id)s::BIGINT IS NULL OR w.category_id = %(category_id)s)
        ORDER BY l.added_at, w.id
        """
        return await self._fetch_words(query, {"user_id": user_id, "category_id": category_id})

    async def list_custom(self, user_id: int) -> list[WordRecord]:
        query = f"""
        SELECT {_WORD_COLUMNS}
        FROM user_custom_words cw
        JOIN words w ON w.id = cw.word_id
        LEFT JOIN categories c ON c.id = w.category_id
        WHERE cw.user_id = %(user_id)s
        ORDER BY cw.added_at, w.id
        """
        return await self._fetch_words(query, {"user_id": user_id})

    async def find_by_text(self, text: str, user_id: int | None = None) -> WordRecord | None:
        return await self._find_one("text", text, user_id)

    async def find_by_translation(
        self, translation: str, user_id: int | None = None
    ) -> WordRecord | None:
        return await self._find_one("translation", translation, user_id)

    async def random_system_word(
        self, user_id: int, category_id: int | None = None
    ) -> WordRecord | None:
        conditions = ["w.is_custom = FALSE", _NOT_LEARNED]
        params: dict[str, Any] = {"user_id": user_id}
        if category_id is not None:
            conditions.append("w.category_id = %(category_id)s")
            params["category_id"] = category_id
        return await self._pick_random(conditions, params)

    async def random_custom_word(self, user_id: int, category_id: int) -> WordRecord | None:
        conditions = [
            "w.is_custom = TRUE",
            "w.user_id = %(user_id)s",
            "w.category_id = %(category_id)s",
            _NOT_LEARNED,
        ]
        return await self._pick_random(
            conditions, {"user_id": user_id, "category_id": category_id}
        )

    async def word_for_learning(
        self, user_id: int, category_id: int | None, now: datetime
    ) -> WordRecord | None:
        where = " AND ".join(
            ["w.is_custom = FALSE", _NOT_LEARNED, _NOT_VIEWED]
            + ([] if category_id is None else ["w.category_id = %(category_id)s"])
        )
        params: dict[str, Any] = {"user_id": user_id, "category_id": category_id}
        async with self._pool.connection() as conn:
            try:
                async with conn.cursor(row_factory=dict_row) as cursor:
                    await cursor.execute(f"SELECT COUNT(*) AS total FROM words w WHERE {where}", params)
                    total = int((await cursor.fetchone())["total"])
                    if total == 0:
                        await conn.commit()
                        return None
                    params["offset"] = self._rng.randrange(total)
                    await cursor.execute(
                        f"""
                        SELECT {_WORD_COLUMNS} {_WORDS_FROM}
                        WHERE {where}
                        ORDER BY w.id
                        OFFSET %(offset)s LIMIT 1
                        """,
                        params,
                    )
                    row = await cursor.fetchone()
                    if row is not None:
                        await cursor.execute(
                            """
                            INSERT INTO user_viewed_words (user_id, word_id, viewed_at)
                            VALUES (%s, %s, %s)
                            ON CONFLICT (user_id, word_id) DO NOTHING
                            """,
                            (user_id, row["id"], now),
                        )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
        return _to_word(row) if row else None

    async def words_for_generation(
        self,
        user_id: int,
        now: datetime,
        *,
        category_id: int | None = None,
        limit: int = GENERATION_WORD_LIMIT,
    ) -> list[WordRecord]:
        """Picks learned words that were shown least recently and stamps them as shown."""
        select_query = f"""
        SELECT {_WORD_COLUMNS}
        FROM user_learned_words l
        JOIN words w ON w.id = l.word_id
        LEFT JOIN categories c ON c.id = w.category_id
        WHERE l.user_id = %(user_id)s
          AND (%(category_id)s::BIGINT IS NULL OR w.category_id = %(category_id)s)
        ORDER BY l.last_shown_at ASC NULLS FIRST, random()
        LIMIT %(limit)s
        FOR UPDATE OF l
        """
        update_query = """
        UPDATE user_learned_words
        SET last_shown_at = %s
        WHERE user_id = %s AND word_id = ANY(%s)
        """
        params = {"user_id": user_id, "category_id": category_id, "limit": limit}
        async with self._pool.connection() as conn:
            try:
                async with conn.cursor(row_factory=dict_row) as cursor:
                    await cursor.execute(select_query, params)
                    rows = await cursor.fetchall()
                    if rows:
                        await cursor.execute(
                            update_query, (now, user_id, [row["id"] for row in rows])
                        )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
        return [_to_word(row) for row in rows]

    async def add_to_vocabulary(self, user_id: int, word_id: int) -> bool:
        query = """
        INSERT INTO user_learned_words (user_id, word_id)
        VALUES (%s, %s)
        ON CONFLICT (user_id, word_id) DO NOTHING
        RETURNING word_id
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(query, (user_id, word_id))
                row = await cursor.fetchone()
            await conn.commit()
        return row is not None

    async def mark_viewed(self, user_id: int, word_id: int, now: datetime) -> None:
        query = """
        INSERT INTO user_viewed_words (user_id, word_id, viewed_at)
        VALUES (%s, %s, %s)
        ON CONFLICT (user_id, word_id) DO NOTHING
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(query, (user_id, word_id, now))
            await conn.commit()

    async def create_custom_word(
        self, user_id: int, text: str, translation: str, category_id: int | None
    ) -> WordRecord:
        insert_word = """
        INSERT INTO words (text, translation, category_id, user_id, is_custom)
        VALUES (%s, %s, %s, %s, TRUE)
        RETURNING id
        """
        link_word = """
        INSERT INTO user_custom_words (user_id, word_id)
        VALUES (%s, %s)
        ON CONFLICT (user_id, word_id) DO NOTHING
        """
        async with self._pool.connection() as conn:
            try:
                async with conn.cursor(row_factory=dict_row) as cursor:
                    await cursor.execute(insert_word, (text, translation, category_id, user_id))
                    inserted = await cursor.fetchone()
                    if inserted is None:
                        raise StoreError("failed to insert custom word")
                    await cursor.execute(link_word, (user_id, inserted["id"]))
                    await cursor.execute(
                        f"SELECT {_WORD_COLUMNS} {_WORDS_FROM} WHERE w.id = %s",
                        (inserted["id"],),
                    )
                    row = await cursor.fetchone()
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
        if row is None:
            raise StoreError("custom word disappeared after insert")
        return _to_word(row)

    async def delete_custom_word(self, user_id: int, word_id: int) -> bool:
        query = """
        DELETE FROM words
        WHERE id = %s AND user_id = %s AND is_custom = TRUE
        RETURNING id
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(query, (word_id, user_id))
                row = await cursor.fetchone()
            await conn.commit()
        return row is not None

    async def ensure_system_word(
        self, text: str, translation: str, category_id: int | None
    ) -> bool:
        query = """
        INSERT INTO words (text, translation, category_id, user_id, is_custom)
        SELECT %(text)s, %(translation)s, %(category_id)s, %(user_id)s, FALSE
        WHERE NOT EXISTS (
            SELECT 1 FROM words
            WHERE user_id = %(user_id)s AND is_custom = FALSE AND LOWER(text) = LOWER(%(text)s)
        )
        RETURNING id
        """
        params = {
            "text": text,
            "translation": translation,
            "category_id": category_id,
            "user_id": SYSTEM_USER_ID,
        }
        async with self._pool.connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(query, params)
                row = await cursor.fetchone()
            await conn.commit()
        return row is not None

    async def _find_one(self, column: str, value: str, user_id: int | None) -> WordRecord | None:
        query = f"""
        SELECT {_WORD_COLUMNS} {_WORDS_FROM}
        WHERE LOWER(w.{column}) = LOWER(%(value)s)
          AND (w.is_custom = FALSE OR w.user_id = %(user_id)s)
        ORDER BY w.is_custom, w.id
        LIMIT 1
        """
        params = {"value": value.strip(), "user_id": user_id}
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, params)
                row = await cursor.fetchone()
        return _to_word(row) if row else None

    async def _pick_random(
        self, conditions: list[str], params: dict[str, Any]
    ) -> WordRecord | None:
        where = " AND ".join(conditions)
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(f"SELECT COUNT(*) AS total FROM words w WHERE {where}", params)
                total = int((await cursor.fetchone())["total"])
                if total == 0:
                    return None
                await cursor.execute(
                    f"""
                    SELECT {_WORD_COLUMNS} {_WORDS_FROM}
                    WHERE {where}
                    ORDER BY w.id
                    OFFSET %(offset)s LIMIT 1
                    """,
                    {**params, "offset": self._rng.randrange(total)},
                )
                row = await cursor.fetchone()
        return _to_word(row) if row else None

    async def _fetch_words(self, query: str, params: dict[str, Any]) -> list[WordRecord]:
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, params)
                rows = await cursor.fetchall()
        return [_to_word(row) for row in rows]
