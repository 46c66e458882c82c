from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from learning_bot.db.seed import seed_catalog
from learning_bot.domain.errors import (
    ExternalProviderError,
    InvalidInputError,
    QuotaExceededError,
)
from learning_bot.domain.models import GeneratedStory
from learning_bot.services.text_generation import TextGenerationService


class FakeGenerator:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict[str, str]] = []

    async def generate(self, words):
        self.calls.append(dict(words))
        if self.error is not None:
            raise self.error
        return GeneratedStory(english_text="story", russian_text="история", words=dict(words))


async def _prepare(repos, vocabulary, *learned_ids: int) -> None:
    await seed_catalog(repos.categories, repos.words)
    await vocabulary.register_user(42)
    for word_id in learned_ids:
        await vocabulary.add_word_to_vocabulary(42, word_id)


def test_generation_uses_learned_words(repos, vocabulary) -> None:
    generator = FakeGenerator()
    service = TextGenerationService(vocabulary=vocabulary, generator=generator)

    async def run_case():
        await _prepare(repos, vocabulary, 1)
        return await service.generate(42)

    story = asyncio.run(run_case())
    assert generator.calls == [{"apple": "яблоко"}]
    assert story.words == {"apple": "яблоко"}


def test_generation_without_learned_words_is_invalid(repos, vocabulary) -> None:
    generator = FakeGenerator()
    service = TextGenerationService(vocabulary=vocabulary, generator=generator)

    async def run_case():
        await _prepare(repos, vocabulary)
        with pytest.raises(InvalidInputError):
            await service.generate(42)
        return await vocabulary.get_user(42)

    user = asyncio.run(run_case())
    assert generator.calls == []
    assert user.ai_usage.request_count == 0


def test_second_generation_same_day_hits_quota(repos, vocabulary) -> None:
    generator = FakeGenerator()
    service = TextGenerationService(vocabulary=vocabulary, generator=generator)

    async def run_case():
        await _prepare(repos, vocabulary, 1, 2)
        await service.generate(42)
        with pytest.raises(QuotaExceededError):
            await service.generate(42)

    asyncio.run(run_case())
    assert len(generator.calls) == 1


def test_quota_rejection_leaves_rotation_untouched(repos, vocabulary, clock) -> None:
    generator = FakeGenerator()
    service = TextGenerationService(vocabulary=vocabulary, generator=generator)

    async def run_case():
        await _prepare(repos, vocabulary, *range(1, 13))
        await service.generate(42)
        shown = dict(repos.users._store.users[42].learned)
        clock.now += timedelta(minutes=1)
        with pytest.raises(QuotaExceededError):
            await service.generate(42)
        return shown, dict(repos.users._store.users[42].learned)

    before, after = asyncio.run(run_case())
    assert after == before
    assert sum(stamp is None for stamp in after.values()) == 2


def test_provider_failure_propagates_without_fallback(repos, vocabulary) -> None:
    generator = FakeGenerator(ExternalProviderError("down", provider="gigachat"))
    service = TextGenerationService(vocabulary=vocabulary, generator=generator)

    async def run_case():
        await _prepare(repos, vocabulary, 1)
        with pytest.raises(ExternalProviderError):
            await service.generate(42)
        return await vocabulary.get_user(42)

    assert asyncio.run(run_case()).ai_usage.request_count == 1


def test_provider_failure_uses_fallback_when_enabled(repos, vocabulary) -> None:
    generator = FakeGenerator(ExternalProviderError("down", provider="gigachat"))
    service = TextGenerationService(
        vocabulary=vocabulary, generator=generator, fallback_enabled=True
    )

    async def run_case():
        await _prepare(repos, vocabulary, 1)
        return await service.generate(42)

    story = asyncio.run(run_case())
    assert story.is_fallback is True
    assert story.english_text == "The word 'apple' in English."
    assert story.russian_text == "Слово 'apple' переводится как 'яблоко'."
