from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from learning_bot.domain.models import (
    CategoryRecord,
    GeneratedStory,
    LanguageInfo,
    TranslationResult,
    UserRecord,
    WordRecord,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WordOut(CamelModel):
    id: int
    text: str
    translation: str
    category_id: int | None = None
    category: str | None = None
    user_id: int
    is_custom: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, word: WordRecord) -> WordOut:
        return cls(
            id=word.id,
            text=word.text,
            translation=word.translation,
            category_id=word.category_id,
            category=word.category,
            user_id=word.user_id,
            is_custom=word.is_custom,
            created_at=word.created_at,
            updated_at=word.updated_at,
        )


class CategoryOut(CamelModel):
    id: int
    name: str

    @classmethod
    def from_record(cls, category: CategoryRecord) -> CategoryOut:
        return cls(id=category.id, name=category.name)


class AiUsageOut(CamelModel):
    request_count: int
    last_request_date: date | None = None


class UserOut(CamelModel):
    id: int
    learned_word_ids: list[int]
    viewed_word_ids: list[int]
    custom_word_ids: list[int]
    ai_usage: AiUsageOut
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, user: UserRecord) -> UserOut:
        return cls(
            id=user.id,
            learned_word_ids=list(user.learned_word_ids),
            viewed_word_ids=list(user.viewed_word_ids),
            custom_word_ids=list(user.custom_word_ids),
            ai_usage=AiUsageOut(
                request_count=user.ai_usage.request_count,
                last_request_date=user.ai_usage.last_request_date,
            ),
            created_at=user.created_at,
        )


class AddUserRequest(CamelModel):
    user_id: int


class CustomWordRequest(CamelModel):
    user_id: int
    text: str = ""
    translation: str = ""
    category_id: int | None = None


class TranslateRequest(CamelModel):
    text: str = ""
    target_language_code: str = Field(default="ru")


class TranslationOut(CamelModel):
    original_text: str
    translated_text: str
    target_language: str
    source: str

    @classmethod
    def from_result(cls, result: TranslationResult) -> TranslationOut:
        return cls(
            original_text=result.original_text,
            translated_text=result.translated_text,
            target_language=result.target_language,
            source=result.source,
        )


class LanguageOut(CamelModel):
    code: str
    name: str

    @classmethod
    def from_info(cls, info: LanguageInfo) -> LanguageOut:
        return cls(code=info.code, name=info.name)


class GeneratedTextOut(CamelModel):
    english_text: str
    russian_text: str
    words: dict[str, str]

    @classmethod
    def from_story(cls, story: GeneratedStory) -> GeneratedTextOut:
        return cls(
            english_text=story.english_text,
            russian_text=story.russian_text,
            words=dict(story.words),
        )


class MessageOut(CamelModel):
    message: str
