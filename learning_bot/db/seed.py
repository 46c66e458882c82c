from __future__ import annotations

import logging
from typing import Protocol

from learning_bot.constants import DEFAULT_CATEGORIES, MY_WORDS_CATEGORY
from learning_bot.domain.models import CategoryRecord

logger = logging.getLogger(__name__)

SEED_WORDS: tuple[tuple[str, str, str], ...] = (
    ("apple", "яблоко", "Food"),
    ("banana", "банан", "Food"),
    ("bread", "хлеб", "Food"),
    ("computer", "компьютер", "Technology"),
    ("smartphone", "смартфон", "Technology"),
    ("internet", "интернет", "Technology"),
    ("meeting", "встреча", "Business"),
    ("contract", "контракт", "Business"),
    ("deadline", "срок", "Business"),
    ("airport", "аэропорт", "Travel"),
    ("hotel", "отель", "Travel"),
    ("passport", "паспорт", "Travel"),
    ("doctor", "врач", "Health"),
    ("hospital", "больница", "Health"),
    ("medicine", "лекарство", "Health"),
)


class _Categories(Protocol):
    async def ensure(self, name: str) -> CategoryRecord: ...


class _Words(Protocol):
    async def ensure_system_word(
        self, text: str, translation: str, category_id: int | None
    ) -> bool: ...


async def seed_catalog(categories: _Categories, words: _Words) -> int:
    """Creates the fixed categories and shared words that are not there yet.

    Safe to run on every start; returns the number of words inserted.
    """
    names = [*DEFAULT_CATEGORIES, MY_WORDS_CATEGORY]
    for _, _, category in SEED_WORDS:
        if category not in names:
            names.append(category)

    category_ids: dict[str, int] = {}
    for name in names:
        record = await categories.ensure(name)
        category_ids[name] = record.id

    inserted = 0
    for text, translation, category in SEED_WORDS:
        if await words.ensure_system_word(text, translation, category_ids[category]):
            inserted += 1
    logger.info("Seed complete: %d categories, %d new words", len(category_ids), inserted)
    return inserted
