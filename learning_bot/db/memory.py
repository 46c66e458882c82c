from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from learning_bot.constants import GENERATION_WORD_LIMIT, SYSTEM_USER_ID
from learning_bot.domain.errors import QuotaExceededError, UserAlreadyExistsError
from learning_bot.domain.models import AiUsage, CategoryRecord, UserRecord, WordRecord


@dataclass(slots=True)
class _UserState:
    id: int
    created_at: datetime
    learned: dict[int, datetime | None] = field(default_factory=dict)
    viewed: dict[int, datetime] = field(default_factory=dict)
    custom: list[int] = field(default_factory=list)
    ai_usage: AiUsage = field(default_factory=AiUsage)


class MemoryStore:
    def __init__(self, *, rng: random.Random | None = None) -> None:
        self.lock = asyncio.Lock()
        self.rng = rng or random.Random()
        self.users: dict[int, _UserState] = {}
        self.words: dict[int, WordRecord] = {}
        self.categories: dict[int, CategoryRecord] = {}
        self._next_word_id = 1
        self._next_category_id = 1

    def next_word_id(self) -> int:
        word_id = self._next_word_id
        self._next_word_id += 1
        return word_id

    def next_category_id(self) -> int:
        category_id = self._next_category_id
        self._next_category_id += 1
        return category_id

    def category_name(self, category_id: int | None) -> str | None:
        category = self.categories.get(category_id) if category_id is not None else None
        return category.name if category else None


def _now() -> datetime:
    return datetime.now(UTC)


class MemoryCategoriesRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def list_all(self) -> list[CategoryRecord]:
        async with self._store.lock:
            return sorted(self._store.categories.values(), key=lambda item: item.id)

    async def get_by_id(self, category_id: int) -> CategoryRecord | None:
        async with self._store.lock:
            return self._store.categories.get(category_id)

    async def get_by_name(self, name: str) -> CategoryRecord | None:
        async with self._store.lock:
            return self._find(name)

    async def ensure(self, name: str) -> CategoryRecord:
        async with self._store.lock:
            existing = self._find(name)
            if existing is not None:
                return existing
            category = CategoryRecord(id=self._store.next_category_id(), name=name.strip())
            self._store.categories[category.id] = category
            return category

    def _find(self, name: str) -> CategoryRecord | None:
        wanted = name.strip().lower()
        for category in self._store.categories.values():
            if category.name.lower() == wanted:
                return category
        return None


class MemoryUsersRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def exists(self, user_id: int) -> bool:
        async with self._store.lock:
            return user_id in self._store.users

    async def create(self, user_id: int) -> UserRecord:
        async with self._store.lock:
            if user_id in self._store.users:
                raise UserAlreadyExistsError(user_id)
            state = _UserState(id=user_id, created_at=_now())
            self._store.users[user_id] = state
            return _to_user(state)

    async def get(self, user_id: int) -> UserRecord | None:
        async with self._store.lock:
            state = self._store.users.get(user_id)
            return _to_user(state) if state else None

    async def consume_ai_request(self, user_id: int, today: date, limit: int) -> AiUsage:
        async with self._store.lock:
            state = self._store.users[user_id]
            if not state.ai_usage.can_make_request(today, limit):
                raise QuotaExceededError("Daily AI request limit reached")
            state.ai_usage = state.ai_usage.increment(today, limit)
            return state.ai_usage


def _to_user(state: _UserState) -> UserRecord:
    return UserRecord(
        id=state.id,
        learned_word_ids=tuple(state.learned),
        viewed_word_ids=tuple(state.viewed),
        custom_word_ids=tuple(state.custom),
        ai_usage=state.ai_usage,
        created_at=state.created_at,
    )


class MemoryWordsRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def get_by_id(self, word_id: int) -> WordRecord | None:
        async with self._store.lock:
            return self._store.words.get(word_id)

    async def list_all(self) -> list[WordRecord]:
        async with self._store.lock:
            return [word for word in self._sorted_words() if not word.is_custom]

    async def list_by_category(self, category_id: int) -> list[WordRecord]:
        async with self._store.lock:
            return [
                word
                for word in self._sorted_words()
                if not word.is_custom and word.category_id == category_id
            ]

    async def list_learned(self, user_id: int, category_id: int | None = None) -> list[WordRecord]:
        async with self._store.lock:
            state = self._store.users.get(user_id)
            if state is None:
                return []
            words = [self._store.words[word_id] for word_id in state.learned]
            return [
                word for word in words if category_id is None or word.category_id == category_id
            ]

    async def list_custom(self, user_id: int) -> list[WordRecord]:
        async with self._store.lock:
            state = self._store.users.get(user_id)
            if state is None:
                return []
            return [self._store.words[word_id] for word_id in state.custom]

    async def find_by_text(self, text: str, user_id: int | None = None) -> WordRecord | None:
        async with self._store.lock:
            return self._find_one(lambda word: word.text, text, user_id)

    async def find_by_translation(
        self, translation: str, user_id: int | None = None
    ) -> WordRecord | None:
        async with self._store.lock:
            return self._find_one(lambda word: word.translation, translation, user_id)

    async def random_system_word(
        self, user_id: int, category_id: int | None = None
    ) -> WordRecord | None:
        async with self._store.lock:
            learned = self._learned(user_id)
            candidates = [
                word
                for word in self._sorted_words()
                if not word.is_custom
                and word.id not in learned
                and (category_id is None or word.category_id == category_id)
            ]
            return self._pick(candidates)

    async def random_custom_word(self, user_id: int, category_id: int) -> WordRecord | None:
        async with self._store.lock:
            learned = self._learned(user_id)
            candidates = [
                word
                for word in self._sorted_words()
                if word.is_custom
                and word.user_id == user_id
                and word.category_id == category_id
                and word.id not in learned
            ]
            return self._pick(candidates)

    async def word_for_learning(
        self, user_id: int, category_id: int | None, now: datetime
    ) -> WordRecord | None:
        async with self._store.lock:
            state = self._store.users.get(user_id)
            if state is None:
                return None
            candidates = [
                word
                for word in self._sorted_words()
                if not word.is_custom
                and word.id not in state.learned
                and word.id not in state.viewed
                and (category_id is None or word.category_id == category_id)
            ]
            word = self._pick(candidates)
            if word is not None:
                state.viewed.setdefault(word.id, now)
            return word

    async def words_for_generation(
        self,
        user_id: int,
        now: datetime,
        *,
        category_id: int | None = None,
        limit: int = GENERATION_WORD_LIMIT,
    ) -> list[WordRecord]:
        async with self._store.lock:
            state = self._store.users.get(user_id)
            if state is None:
                return []
            candidates = [
                (word_id, shown_at)
                for word_id, shown_at in state.learned.items()
                if category_id is None or self._store.words[word_id].category_id == category_id
            ]
            self._store.rng.shuffle(candidates)
            never_shown = datetime.min.replace(tzinfo=UTC)
            candidates.sort(key=lambda item: item[1] or never_shown)
            picked = [word_id for word_id, _ in candidates[:limit]]
            for word_id in picked:
                state.learned[word_id] = now
            return [self._store.words[word_id] for word_id in picked]

    async def add_to_vocabulary(self, user_id: int, word_id: int) -> bool:
        async with self._store.lock:
            state = self._store.users[user_id]
            if word_id in state.learned:
                return False
            state.learned[word_id] = None
            return True

    async def mark_viewed(self, user_id: int, word_id: int, now: datetime) -> None:
        async with self._store.lock:
            self._store.users[user_id].viewed.setdefault(word_id, now)

    async def create_custom_word(
        self, user_id: int, text: str, translation: str, category_id: int | None
    ) -> WordRecord:
        async with self._store.lock:
            state = self._store.users[user_id]
            now = _now()
            word = WordRecord(
                id=self._store.next_word_id(),
                text=text,
                translation=translation,
                category_id=category_id,
                category=self._store.category_name(category_id),
                user_id=user_id,
                is_custom=True,
                created_at=now,
                updated_at=now,
            )
            self._store.words[word.id] = word
            state.custom.append(word.id)
            return word

    async def delete_custom_word(self, user_id: int, word_id: int) -> bool:
        async with self._store.lock:
            word = self._store.words.get(word_id)
            if word is None or not word.is_custom or word.user_id != user_id:
                return False
            del self._store.words[word_id]
            for state in self._store.users.values():
                state.learned.pop(word_id, None)
                state.viewed.pop(word_id, None)
                if word_id in state.custom:
                    state.custom.remove(word_id)
            return True

    async def ensure_system_word(
        self, text: str, translation: str, category_id: int | None
    ) -> bool:
        async with self._store.lock:
            wanted = text.strip().lower()
            for word in self._store.words.values():
                if not word.is_custom and word.text.lower() == wanted:
                    return False
            now = _now()
            word = WordRecord(
                id=self._store.next_word_id(),
                text=text,
                translation=translation,
                category_id=category_id,
                category=self._store.category_name(category_id),
                user_id=SYSTEM_USER_ID,
                is_custom=False,
                created_at=now,
                updated_at=now,
            )
            self._store.words[word.id] = word
            return True

    def _sorted_words(self) -> list[WordRecord]:
        return [self._store.words[word_id] for word_id in sorted(self._store.words)]

    def _learned(self, user_id: int) -> dict[int, datetime | None]:
        state = self._store.users.get(user_id)
        return state.learned if state else {}

    def _pick(self, candidates: list[WordRecord]) -> WordRecord | None:
        if not candidates:
            return None
        return candidates[self._store.rng.randrange(len(candidates))]

    def _find_one(self, attribute, value: str, user_id: int | None) -> WordRecord | None:
        wanted = value.strip().lower()
        matches = [
            word
            for word in self._sorted_words()
            if attribute(word).lower() == wanted and (not word.is_custom or word.user_id == user_id)
        ]
        matches.sort(key=lambda word: word.is_custom)
        return matches[0] if matches else None


@dataclass(frozen=True, slots=True)
class MemoryRepositories:
    users: MemoryUsersRepository
    words: MemoryWordsRepository
    categories: MemoryCategoriesRepository


def build_memory_repositories(*, rng: random.Random | None = None) -> MemoryRepositories:
    store = MemoryStore(rng=rng)
    return MemoryRepositories(
        users=MemoryUsersRepository(store),
        words=MemoryWordsRepository(store),
        categories=MemoryCategoriesRepository(store),
    )
