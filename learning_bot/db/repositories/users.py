from __future__ import annotations

from datetime import date

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from learning_bot.domain.errors import QuotaExceededError, UserAlreadyExistsError
from learning_bot.domain.models import AiUsage, UserRecord


class UsersRepository:
    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def exists(self, user_id: int) -> bool:
        query = "SELECT 1 FROM users WHERE id = %s"
        async with self._pool.connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(query, (user_id,))
                row = await cursor.fetchone()
        return row is not None

    async def create(self, user_id: int) -> UserRecord:
        query = """
        INSERT INTO users (id)
        VALUES (%s)
        ON CONFLICT (id) DO NOTHING
        RETURNING id, created_at
        """
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, (user_id,))
                row = await cursor.fetchone()
            await conn.commit()
        if row is None:
            raise UserAlreadyExistsError(user_id)
        return UserRecord(id=row["id"], created_at=row["created_at"])

    async def get(self, user_id: int) -> UserRecord | None:
        query = """
        SELECT
            u.id,
            u.created_at,
            ARRAY(
                SELECT word_id FROM user_learned_words
                WHERE user_id = u.id ORDER BY added_at, word_id
            ) AS learned_word_ids,
            ARRAY(
                SELECT word_id FROM user_viewed_words
                WHERE user_id = u.id ORDER BY viewed_at, word_id
            ) AS viewed_word_ids,
            ARRAY(
                SELECT word_id FROM user_custom_words
                WHERE user_id = u.id ORDER BY added_at, word_id
            ) AS custom_word_ids,
            a.request_count,
            a.request_date
        FROM users u
        LEFT JOIN user_ai_usage a ON a.user_id = u.id
        WHERE u.id = %s
        """
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, (user_id,))
                row = await cursor.fetchone()
        if row is None:
            return None
        return UserRecord(
            id=row["id"],
            learned_word_ids=tuple(row["learned_word_ids"] or ()),
            viewed_word_ids=tuple(row["viewed_word_ids"] or ()),
            custom_word_ids=tuple(row["custom_word_ids"] or ()),
            ai_usage=AiUsage(
                request_count=int(row["request_count"] or 0),
                last_request_date=row["request_date"],
            ),
            created_at=row["created_at"],
        )

    async def consume_ai_request(self, user_id: int, today: date, limit: int) -> AiUsage:
        """Counts one AI request for ``today`` or raises when the limit is used up.

        The check and the increment happen in one statement so two concurrent
        requests for the same user cannot both pass.
        """
        query = """
        INSERT INTO user_ai_usage (user_id, request_date, request_count)
        VALUES (%(user_id)s, %(today)s, 1)
        ON CONFLICT (user_id) DO UPDATE SET
            request_count = CASE
                WHEN user_ai_usage.request_date = EXCLUDED.request_date
                    THEN user_ai_usage.request_count + 1
                ELSE 1
            END,
            request_date = EXCLUDED.request_date
        WHERE user_ai_usage.request_date <> EXCLUDED.request_date
           OR user_ai_usage.request_count < %(limit)s
        RETURNING request_count, request_date
        """
        params = {"user_id": user_id, "today": today, "limit": limit}
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, params)
                row = await cursor.fetchone()
            await conn.commit()
        if row is None:
            raise QuotaExceededError("Daily AI request limit reached")
        return AiUsage(request_count=row["request_count"], last_request_date=row["request_date"])
