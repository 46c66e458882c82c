from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from learning_bot.api.container import ServiceContainer
from learning_bot.api.routes import text_generation, translator, users, words
from learning_bot.domain.errors import (
    ConflictError,
    ExternalProviderError,
    InvalidInputError,
    NotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


async def _conflict(request: Request, exc: ConflictError) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, str(exc))


async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return _error(status.HTTP_400_BAD_REQUEST, details or "Invalid request")


async def _provider_failure(request: Request, exc: ExternalProviderError) -> JSONResponse:
    logger.error(
        "%s provider failure on %s %s: %s",
        exc.provider or "external",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "External service error")


async def _store_failure(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(container: ServiceContainer) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await container.start()
        try:
            yield
        finally:
            await container.stop()

    app = FastAPI(
        title="Learning Bot API",
        description="Vocabulary learning backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(ConflictError, _conflict)
    app.add_exception_handler(InvalidInputError, _invalid_input)
    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.add_exception_handler(ExternalProviderError, _provider_failure)
    app.add_exception_handler(StoreError, _store_failure)
    app.add_exception_handler(psycopg.Error, _store_failure)

    app.include_router(users.router, prefix="/api/user", tags=["user"])
    app.include_router(words.router, prefix="/api/word", tags=["word"])
    app.include_router(translator.router, prefix="/api/translator", tags=["translator"])
    app.include_router(
        text_generation.router, prefix="/api/textgeneration", tags=["textgeneration"]
    )
    return app
