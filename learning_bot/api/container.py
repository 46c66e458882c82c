from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from learning_bot.config import ApiSettings
from learning_bot.constants import GIGACHAT_TOKEN_SAFETY_MARGIN, YANDEX_TOKEN_SAFETY_MARGIN
from learning_bot.db.memory import build_memory_repositories
from learning_bot.db.pool import DatabasePool
from learning_bot.db.repositories import CategoriesRepository, UsersRepository, WordsRepository
from learning_bot.db.seed import seed_catalog
from learning_bot.services import (
    GigaChatAuth,
    GigaChatStoryGenerator,
    TextGenerationService,
    TokenCache,
    TranslationService,
    VocabularyService,
    YandexIamAuth,
    YandexTranslator,
)

logger = logging.getLogger(__name__)

Hook = Callable[[], Awaitable[object]]


@dataclass
class ServiceContainer:
    vocabulary: VocabularyService
    translation: TranslationService
    text_generation: TextGenerationService
    on_startup: list[Hook] = field(default_factory=list)
    on_shutdown: list[Hook] = field(default_factory=list)
    refreshed_caches: list[TokenCache] = field(default_factory=list)
    _stop_event: asyncio.Event | None = field(default=None, init=False, repr=False)
    _tasks: list[asyncio.Task] = field(default_factory=list, init=False, repr=False)

    async def start(self) -> None:
        for hook in self.on_startup:
            await hook()
        self._stop_event = asyncio.Event()
        for cache in self.refreshed_caches:
            task = asyncio.create_task(
                cache.run_refresh_loop(self._stop_event), name=f"{cache.name}-token-refresh"
            )
            self._tasks.append(task)
        logger.info("Service container started (%d background tasks)", len(self._tasks))

    async def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        for hook in reversed(self.on_shutdown):
            try:
                await hook()
            except Exception:
                logger.exception("Shutdown hook failed")
        logger.info("Service container stopped")


def _build_container(settings: ApiSettings, repositories) -> ServiceContainer:
    gigachat_client = httpx.AsyncClient(verify=settings.gigachat_verify_ssl)
    yandex_client = httpx.AsyncClient()

    gigachat_tokens = TokenCache(
        "gigachat",
        GigaChatAuth(
            client=gigachat_client,
            auth_key=settings.gigachat_auth_key,
            oauth_url=settings.gigachat_oauth_url,
            scope=settings.gigachat_scope,
            timeout_seconds=settings.token_timeout_seconds,
        ),
        safety_margin=GIGACHAT_TOKEN_SAFETY_MARGIN,
    )
    yandex_tokens = TokenCache(
        "yandex",
        YandexIamAuth(
            client=yandex_client,
            oauth_token=settings.yandex_oauth_token,
            timeout_seconds=settings.token_timeout_seconds,
        ),
        safety_margin=YANDEX_TOKEN_SAFETY_MARGIN,
    )

    vocabulary = VocabularyService(
        users=repositories.users,
        words=repositories.words,
        categories=repositories.categories,
    )
    translation = TranslationService(
        vocabulary=vocabulary,
        translator=YandexTranslator(
            client=yandex_client,
            tokens=yandex_tokens,
            folder_id=settings.yandex_folder_id,
            timeout_seconds=settings.http_timeout_seconds,
        ),
    )
    text_generation = TextGenerationService(
        vocabulary=vocabulary,
        generator=GigaChatStoryGenerator(
            client=gigachat_client,
            tokens=gigachat_tokens,
            api_url=settings.gigachat_api_url,
            model=settings.gigachat_model,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        fallback_enabled=settings.generation_fallback,
    )

    async def seed() -> None:
        await seed_catalog(repositories.categories, repositories.words)

    return ServiceContainer(
        vocabulary=vocabulary,
        translation=translation,
        text_generation=text_generation,
        on_startup=[seed],
        on_shutdown=[gigachat_client.aclose, yandex_client.aclose],
        refreshed_caches=[yandex_tokens],
    )


@dataclass(frozen=True, slots=True)
class _PostgresRepositories:
    users: UsersRepository
    words: WordsRepository
    categories: CategoriesRepository


def build_postgres_container(settings: ApiSettings) -> ServiceContainer:
    database = DatabasePool(settings.database_url)
    repositories = _PostgresRepositories(
        users=UsersRepository(database.pool),
        words=WordsRepository(database.pool),
        categories=CategoriesRepository(database.pool),
    )
    container = _build_container(settings, repositories)
    container.on_startup.insert(0, database.open)
    container.on_shutdown.insert(0, database.close)
    return container


def build_memory_container(settings: ApiSettings) -> ServiceContainer:
    logger.warning("Using the in-memory store; data is lost on restart")
    return _build_container(settings, build_memory_repositories())
