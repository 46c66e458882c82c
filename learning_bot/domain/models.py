from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from learning_bot.constants import DAILY_AI_REQUEST_LIMIT
from learning_bot.domain.errors import QuotaExceededError

TranslationSource = Literal["database", "yandex"]


@dataclass(frozen=True, slots=True)
class CategoryRecord:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class WordRecord:
    id: int
    text: str
    translation: str
    category_id: int | None
    category: str | None
    user_id: int
    is_custom: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class AiUsage:
    request_count: int = 0
    last_request_date: date | None = None

    def can_make_request(self, today: date, limit: int = DAILY_AI_REQUEST_LIMIT) -> bool:
        if self.last_request_date != today:
            return True
        return self.request_count < limit

    def increment(self, today: date, limit: int = DAILY_AI_REQUEST_LIMIT) -> AiUsage:
        if not self.can_make_request(today, limit):
            raise QuotaExceededError("Daily AI request limit reached")
        if self.last_request_date != today:
            return AiUsage(request_count=1, last_request_date=today)
        return AiUsage(request_count=self.request_count + 1, last_request_date=today)


@dataclass(frozen=True, slots=True)
class UserRecord:
    id: int
    learned_word_ids: tuple[int, ...] = ()
    viewed_word_ids: tuple[int, ...] = ()
    custom_word_ids: tuple[int, ...] = ()
    ai_usage: AiUsage = field(default_factory=AiUsage)
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class GeneratedStory:
    english_text: str
    russian_text: str
    words: dict[str, str]
    used_words: dict[str, str] = field(default_factory=dict)
    is_fallback: bool = False


@dataclass(frozen=True, slots=True)
class TranslationResult:
    original_text: str
    translated_text: str
    target_language: str
    source: TranslationSource


@dataclass(frozen=True, slots=True)
class LanguageInfo:
    code: str
    name: str
