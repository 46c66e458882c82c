from __future__ import annotations

import random
from datetime import UTC, datetime

import pytest

from learning_bot.db.memory import MemoryRepositories, build_memory_repositories
from learning_bot.services.vocabulary import VocabularyService


class FakeClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repos() -> MemoryRepositories:
    return build_memory_repositories(rng=random.Random(7))


@pytest.fixture
def vocabulary(repos: MemoryRepositories, clock: FakeClock) -> VocabularyService:
    return VocabularyService(
        users=repos.users,
        words=repos.words,
        categories=repos.categories,
        clock=clock,
    )
