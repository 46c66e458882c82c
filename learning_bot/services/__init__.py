"""Service layer exports."""

from learning_bot.services.gigachat import GigaChatAuth, GigaChatStoryGenerator
from learning_bot.services.text_generation import TextGenerationService
from learning_bot.services.token_cache import TokenCache
from learning_bot.services.translation import TranslationService
from learning_bot.services.vocabulary import VocabularyService
from learning_bot.services.yandex import YandexIamAuth, YandexTranslator

__all__ = [
    "GigaChatAuth",
    "GigaChatStoryGenerator",
    "TextGenerationService",
    "TokenCache",
    "TranslationService",
    "VocabularyService",
    "YandexIamAuth",
    "YandexTranslator",
]
