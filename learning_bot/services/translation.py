from __future__ import annotations

import logging

from learning_bot.domain.errors import InvalidInputError
from learning_bot.domain.models import LanguageInfo, TranslationResult

logger = logging.getLogger(__name__)

LOCAL_TARGET_LANGUAGE = "ru"


class TranslationService:
    def __init__(self, *, vocabulary, translator) -> None:
        self._vocabulary = vocabulary
        self._translator = translator

    async def translate(self, text: str, target_language: str) -> TranslationResult:
        text = (text or "").strip()
        target_language = (target_language or "").strip().lower()
        if not text:
            raise InvalidInputError("Text is required")
        if not target_language:
            raise InvalidInputError("Target language code is required")

        if target_language == LOCAL_TARGET_LANGUAGE:
            known = await self._vocabulary.find_translation(text)
            if known is not None:
                logger.info("Translated %r from the word table", text)
                return TranslationResult(
                    original_text=text,
                    translated_text=known.translation,
                    target_language=LOCAL_TARGET_LANGUAGE,
                    source="database",
                )

        translated = await self._translator.translate(text, target_language)
        logger.info("Translated %r to %s with Yandex", text, target_language)
        return TranslationResult(
            original_text=text,
            translated_text=translated,
            target_language=target_language,
            source="yandex",
        )

    async def supported_languages(self) -> list[LanguageInfo]:
        return await self._translator.supported_languages()
