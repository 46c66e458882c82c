from __future__ import annotations

from fastapi import Request

from learning_bot.api.container import ServiceContainer
from learning_bot.services.text_generation import TextGenerationService
from learning_bot.services.translation import TranslationService
from learning_bot.services.vocabulary import VocabularyService


def _container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_vocabulary(request: Request) -> VocabularyService:
    return _container(request).vocabulary


def get_translation(request: Request) -> TranslationService:
    return _container(request).translation


def get_text_generation(request: Request) -> TextGenerationService:
    return _container(request).text_generation
