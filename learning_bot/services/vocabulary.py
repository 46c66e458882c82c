from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from learning_bot.constants import DAILY_AI_REQUEST_LIMIT, GENERATION_WORD_LIMIT, MY_WORDS_CATEGORY
from learning_bot.domain.errors import (
    CategoryNotFoundError,
    InvalidInputError,
    NoWordsAvailableError,
    NotFoundError,
    UserNotFoundError,
    WordNotFoundError,
)
from learning_bot.domain.models import AiUsage, CategoryRecord, UserRecord, WordRecord

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class VocabularyService:
    def __init__(
        self,
        *,
        users,
        words,
        categories,
        clock: Callable[[], datetime] = _utc_now,
        daily_ai_limit: int = DAILY_AI_REQUEST_LIMIT,
    ) -> None:
        self._users = users
        self._words = words
        self._categories = categories
        self._clock = clock
        self._daily_ai_limit = daily_ai_limit

    async def user_exists(self, user_id: int) -> bool:
        return await self._users.exists(user_id)

    async def register_user(self, user_id: int) -> UserRecord:
        user = await self._users.create(user_id)
        logger.info("Registered user %s", user_id)
        return user

    async def get_user(self, user_id: int) -> UserRecord:
        user = await self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def require_user(self, user_id: int) -> None:
        if not await self._users.exists(user_id):
            raise UserNotFoundError(user_id)

    async def categories(self) -> list[CategoryRecord]:
        return await self._categories.list_all()

    async def resolve_category(self, category: int | str) -> CategoryRecord:
        """Looks a category up by id or, for non-numeric input, by name."""
        record: CategoryRecord | None
        if isinstance(category, int) or (isinstance(category, str) and category.strip().isdigit()):
            record = await self._categories.get_by_id(int(category))
        else:
            record = await self._categories.get_by_name(str(category))
        if record is None:
            raise CategoryNotFoundError(category)
        return record

    async def all_words(self) -> list[WordRecord]:
        return await self._words.list_all()

    async def get_word(self, word_id: int) -> WordRecord:
        word = await self._words.get_by_id(word_id)
        if word is None:
            raise WordNotFoundError(word_id)
        return word

    async def words_by_category(self, category: int | str) -> list[WordRecord]:
        record = await self.resolve_category(category)
        words = await self._words.list_by_category(record.id)
        if not words:
            raise CategoryNotFoundError(category)
        return words

    async def get_random_word(self, user_id: int, category_id: int | None = None) -> WordRecord:
        await self.require_user(user_id)
        word = await self._words.random_system_word(user_id, category_id)
        if word is None:
            raise NotFoundError("No words available for learning")
        return word

    async def get_word_for_learning(self, user_id: int, category: str | None = None) -> WordRecord:
        await self.require_user(user_id)
        category_id = None
        if category:
            category_id = (await self.resolve_category(category)).id
        word = await self._words.word_for_learning(user_id, category_id, self._clock())
        if word is None:
            raise NoWordsAvailableError("All words in this category are already viewed or learned")
        return word

    async def get_random_custom_word(self, user_id: int) -> WordRecord | None:
        await self.require_user(user_id)
        my_words = await self._categories.get_by_name(MY_WORDS_CATEGORY)
        if my_words is None:
            return None
        return await self._words.random_custom_word(user_id, my_words.id)

    async def add_word_to_vocabulary(self, user_id: int, word_id: int) -> bool:
        await self.require_user(user_id)
        await self.get_word(word_id)
        added = await self._words.add_to_vocabulary(user_id, word_id)
        if added:
            logger.info("User %s learned word %s", user_id, word_id)
        return added

    async def learned_words(self, user_id: int, category_id: int | None = None) -> list[WordRecord]:
        await self.require_user(user_id)
        return await self._words.list_learned(user_id, category_id)

    async def custom_words(self, user_id: int) -> list[WordRecord]:
        await self.require_user(user_id)
        return await self._words.list_custom(user_id)

    async def add_custom_word(
        self,
        user_id: int,
        text: str,
        translation: str,
        category_id: int | None = None,
    ) -> WordRecord:
        text = (text or "").strip()
        translation = (translation or "").strip()
        if not text or not translation:
            raise InvalidInputError("Text and translation are required")
        await self.require_user(user_id)
        if category_id is None:
            category = await self._categories.ensure(MY_WORDS_CATEGORY)
        else:
            category = await self.resolve_category(category_id)
        word = await self._words.create_custom_word(user_id, text, translation, category.id)
        logger.info("User %s added custom word %s to %s", user_id, word.id, category.name)
        return word

    async def delete_custom_word(self, user_id: int, word_id: int) -> bool:
        deleted = await self._words.delete_custom_word(user_id, word_id)
        if deleted:
            logger.info("User %s deleted custom word %s", user_id, word_id)
        else:
            logger.info("User %s cannot delete word %s: not found or not owned", user_id, word_id)
        return deleted

    async def find_translation(self, text: str) -> WordRecord | None:
        return await self._words.find_by_text(text)

    async def words_for_generation(
        self, user_id: int, category_id: int | None = None, limit: int = GENERATION_WORD_LIMIT
    ) -> list[WordRecord]:
        await self.require_user(user_id)
        return await self._words.words_for_generation(
            user_id, self._clock(), category_id=category_id, limit=limit
        )

    async def consume_ai_request(self, user_id: int) -> AiUsage:
        today = self._clock().astimezone(UTC).date()
        return await self._users.consume_ai_request(user_id, today, self._daily_ai_limit)
