from __future__ import annotations

import logging

from learning_bot.domain.errors import ExternalProviderError, InvalidInputError
from learning_bot.domain.models import GeneratedStory
from learning_bot.domain.story import build_fallback_story

logger = logging.getLogger(__name__)


class TextGenerationService:
    """Builds a bilingual story from the learned words of one user.

    The daily AI quota is spent before the provider is called, so a failed
    generation still counts.
    """

    def __init__(self, *, vocabulary, generator, fallback_enabled: bool = False) -> None:
        self._vocabulary = vocabulary
        self._generator = generator
        self._fallback_enabled = fallback_enabled

    async def generate(self, user_id: int, category_id: int | None = None) -> GeneratedStory:
        if not await self._vocabulary.learned_words(user_id, category_id):
            raise InvalidInputError("Not enough learned words to generate a text")
        await self._vocabulary.consume_ai_request(user_id)
        # stamps last_shown_at; must run after the quota is consumed
        words = await self._vocabulary.words_for_generation(user_id, category_id)
        if not words:
            raise InvalidInputError("Not enough learned words to generate a text")

        word_map = {word.text: word.translation for word in words}
        try:
            return await self._generator.generate(word_map)
        except ExternalProviderError:
            if not self._fallback_enabled:
                raise
            logger.exception("Story generation failed for user %s; using fallback text", user_id)
            return build_fallback_story(word_map)
