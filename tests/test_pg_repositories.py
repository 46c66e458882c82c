from __future__ import annotations

import asyncio
import os
import random
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime, timedelta

import pytest

from learning_bot.db.migrate import apply_migrations
from learning_bot.db.pool import DatabasePool
from learning_bot.db.repositories import CategoriesRepository, UsersRepository, WordsRepository
from learning_bot.db.seed import seed_catalog
from learning_bot.domain.errors import QuotaExceededError, StoreError, UserAlreadyExistsError
from learning_bot.domain.models import AiUsage

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _word_row(word_id: int, text: str = "apple", translation: str = "яблоко") -> dict:
    return {
        "id": word_id,
        "text": text,
        "translation": translation,
        "category_id": 1,
        "category": "Food",
        "user_id": 0,
        "is_custom": False,
        "created_at": NOW,
        "updated_at": NOW,
    }


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn

    async def __aenter__(self) -> FakeCursor:
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def execute(self, query: str, params=None) -> None:
        self._conn.executed.append((" ".join(query.split()), params))
        if self._conn.fail_on and self._conn.fail_on in query:
            raise RuntimeError("connection lost")

    async def fetchone(self):
        return self._conn.results.pop(0)

    async def fetchall(self):
        return self._conn.results.pop(0)


class FakeConnection:
    def __init__(self, results: list, fail_on: str | None = None) -> None:
        self.results = list(results)
        self.fail_on = fail_on
        self.executed: list[tuple[str, object]] = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, row_factory=None) -> FakeCursor:
        return FakeCursor(self)

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


class FakePool:
    def __init__(self, *results, fail_on: str | None = None) -> None:
        self.conn = FakeConnection(list(results), fail_on=fail_on)

    @asynccontextmanager
    async def connection(self):
        yield self.conn


class LastOffset(random.Random):
    def __init__(self) -> None:
        super().__init__(0)
        self.bounds: list[int] = []

    def randrange(self, start, *args, **kwargs):
        self.bounds.append(start)
        return start - 1


def test_random_word_counts_then_picks_by_offset() -> None:
    rng = LastOffset()
    pool = FakePool({"total": 3}, _word_row(9, "bread", "хлеб"))
    words = WordsRepository(pool, rng=rng)

    word = asyncio.run(words.random_system_word(42, category_id=1))

    (count_sql, count_params), (pick_sql, pick_params) = pool.conn.executed
    assert count_sql.startswith("SELECT COUNT(*) AS total FROM words w WHERE")
    assert "user_learned_words" in count_sql
    assert "OFFSET %(offset)s LIMIT 1" in pick_sql
    assert count_params == {"user_id": 42, "category_id": 1}
    assert pick_params == {"user_id": 42, "category_id": 1, "offset": 2}
    assert rng.bounds == [3]
    assert word.text == "bread"


def test_random_word_stops_after_empty_count() -> None:
    pool = FakePool({"total": 0})

    assert asyncio.run(WordsRepository(pool).random_system_word(42)) is None
    assert len(pool.conn.executed) == 1


def test_word_for_learning_records_view_in_same_transaction() -> None:
    pool = FakePool({"total": 1}, _word_row(4))
    words = WordsRepository(pool, rng=LastOffset())

    word = asyncio.run(words.word_for_learning(42, None, NOW))

    count_sql, _ = pool.conn.executed[0]
    view_sql, view_params = pool.conn.executed[2]
    assert "user_viewed_words v" in count_sql
    assert view_sql.startswith("INSERT INTO user_viewed_words")
    assert view_params == (42, 4, NOW)
    assert pool.conn.commits == 1
    assert word.id == 4


def test_generation_locks_rows_and_stamps_selection() -> None:
    pool = FakePool([_word_row(1), _word_row(2, "bread", "хлеб")])

    picked = asyncio.run(WordsRepository(pool).words_for_generation(42, NOW, limit=10))

    (select_sql, select_params), (update_sql, update_params) = pool.conn.executed
    assert "ORDER BY l.last_shown_at ASC NULLS FIRST, random()" in select_sql
    assert select_sql.endswith("FOR UPDATE OF l")
    assert select_params == {"user_id": 42, "category_id": None, "limit": 10}
    assert update_sql.startswith("UPDATE user_learned_words SET last_shown_at = %s")
    assert update_params == (NOW, 42, [1, 2])
    assert [word.id for word in picked] == [1, 2]
    assert pool.conn.commits == 1


def test_generation_rolls_back_when_stamp_fails() -> None:
    pool = FakePool([_word_row(1)], fail_on="UPDATE user_learned_words")

    with pytest.raises(RuntimeError):
        asyncio.run(WordsRepository(pool).words_for_generation(42, NOW))
    assert (pool.conn.commits, pool.conn.rollbacks) == (0, 1)


def test_custom_word_insert_without_id_rolls_back() -> None:
    pool = FakePool(None)

    with pytest.raises(StoreError):
        asyncio.run(WordsRepository(pool).create_custom_word(42, "kettle", "чайник", 6))
    assert (pool.conn.commits, pool.conn.rollbacks) == (0, 1)


def test_delete_custom_word_is_scoped_to_owner() -> None:
    pool = FakePool(None)

    deleted = asyncio.run(WordsRepository(pool).delete_custom_word(42, 20))

    sql, params = pool.conn.executed[0]
    assert "user_id = %s AND is_custom = TRUE" in sql
    assert params == (20, 42)
    assert deleted is False


def test_quota_upsert_counts_request() -> None:
    pool = FakePool({"request_count": 1, "request_date": date(2026, 3, 1)})

    usage = asyncio.run(UsersRepository(pool).consume_ai_request(42, date(2026, 3, 1), 1))

    sql, params = pool.conn.executed[0]
    assert "ON CONFLICT (user_id) DO UPDATE" in sql
    assert "user_ai_usage.request_count < %(limit)s" in sql
    assert params == {"user_id": 42, "today": date(2026, 3, 1), "limit": 1}
    assert usage == AiUsage(request_count=1, last_request_date=date(2026, 3, 1))


def test_quota_upsert_without_row_is_exhausted() -> None:
    pool = FakePool(None)

    with pytest.raises(QuotaExceededError):
        asyncio.run(UsersRepository(pool).consume_ai_request(42, date(2026, 3, 1), 1))
    assert pool.conn.commits == 1


def test_duplicate_user_insert_is_conflict() -> None:
    pool = FakePool(None)

    with pytest.raises(UserAlreadyExistsError):
        asyncio.run(UsersRepository(pool).create(42))


DATABASE_URL = os.getenv("LEARNING_BOT_TEST_DATABASE_URL")


@pytest.mark.skipif(not DATABASE_URL, reason="LEARNING_BOT_TEST_DATABASE_URL is not set")
def test_repositories_against_postgres() -> None:
    apply_migrations(DATABASE_URL)
    database = DatabasePool(DATABASE_URL, max_size=2)
    user_id = random.randrange(10**12, 10**13)

    async def run_case():
        await database.open()
        users = UsersRepository(database.pool)
        words = WordsRepository(database.pool)
        try:
            await seed_catalog(CategoriesRepository(database.pool), words)
            await users.create(user_id)
            catalog = await words.list_all()
            for word in catalog[:3]:
                await words.add_to_vocabulary(user_id, word.id)
            first = await words.words_for_generation(user_id, NOW, limit=2)
            second = await words.words_for_generation(user_id, NOW + timedelta(minutes=1), limit=2)
            await users.consume_ai_request(user_id, NOW.date(), 1)
            with pytest.raises(QuotaExceededError):
                await users.consume_ai_request(user_id, NOW.date(), 1)
            record = await users.get(user_id)
            return catalog, first, second, record
        finally:
            async with database.pool.connection() as conn:
                await conn.execute("DELETE FROM users WHERE id = %s", (user_id,))
                await conn.commit()
            await database.close()

    catalog, first, second, record = asyncio.run(run_case())
    learned = {word.id for word in catalog[:3]}
    assert {word.id for word in first} <= learned
    assert second[0].id == (learned - {word.id for word in first}).pop()
    assert record.ai_usage.request_count == 1
