from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from learning_bot.domain.errors import (
    ConflictError,
    ExternalProviderError,
    InvalidInputError,
    NoWordsAvailableError,
    NotFoundError,
    QuotaExceededError,
    UserAlreadyExistsError,
)
from learning_bot.domain.models import CategoryRecord, GeneratedStory, TranslationResult, WordRecord

logger = logging.getLogger(__name__)


def _parse_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def word_from_json(payload: dict[str, Any]) -> WordRecord:
    return WordRecord(
        id=int(payload["id"]),
        text=str(payload.get("text", "")),
        translation=str(payload.get("translation", "")),
        category_id=payload.get("categoryId"),
        category=payload.get("category"),
        user_id=int(payload.get("userId", 0)),
        is_custom=bool(payload.get("isCustom", False)),
        created_at=_parse_datetime(payload.get("createdAt")),
        updated_at=_parse_datetime(payload.get("updatedAt")),
    )


def _message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("detail") or payload)
    return str(payload)


class BackendClient:
    """Thin async client for the learning backend.

    HTTP failures are turned back into the domain exceptions the backend
    started from, so handlers can branch on them the same way.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)

    async def close(self) -> None:
        await self._client.aclose()

    async def user_exists(self, user_id: int) -> bool:
        response = await self._request("GET", "/api/user/exists", params={"userId": user_id})
        return bool(response.json())

    async def register_user(self, user_id: int) -> None:
        try:
            await self._request("POST", "/api/user/add", json=user_id)
        except ConflictError as exc:
            raise UserAlreadyExistsError(user_id) from exc

    async def ensure_user(self, user_id: int) -> bool:
        """Registers the user unless already known; returns True for a new registration."""
        if await self.user_exists(user_id):
            return False
        try:
            await self.register_user(user_id)
        except UserAlreadyExistsError:
            return False
        return True

    async def categories(self) -> list[CategoryRecord]:
        response = await self._request("GET", "/api/word/categories")
        return [CategoryRecord(id=int(item["id"]), name=str(item["name"])) for item in response.json()]

    async def word_for_learning(self, user_id: int, category: str | None) -> WordRecord:
        params: dict[str, Any] = {"userId": user_id}
        if category and category != "all":
            params["category"] = category
        response = await self._request(
            "GET", "/api/word/random-word", params=params, conflict=NoWordsAvailableError
        )
        return word_from_json(response.json())

    async def random_word(self, user_id: int, category_id: int | None) -> WordRecord:
        params: dict[str, Any] = {"userId": user_id}
        if category_id is not None:
            params["categoryId"] = category_id
        response = await self._request("GET", "/api/word/random", params=params)
        return word_from_json(response.json())

    async def random_custom_word(self, user_id: int) -> WordRecord:
        response = await self._request(
            "GET", "/api/word/custom/random", params={"userId": user_id}
        )
        return word_from_json(response.json())

    async def get_word(self, word_id: int) -> WordRecord:
        response = await self._request("GET", f"/api/word/{word_id}")
        return word_from_json(response.json())

    async def add_to_vocabulary(self, user_id: int, word_id: int) -> None:
        await self._request(
            "POST", "/api/word/vocabulary/add", params={"userId": user_id, "wordId": word_id}
        )

    async def learned_words(self, user_id: int) -> list[WordRecord]:
        response = await self._request("GET", "/api/word/learned", params={"userId": user_id})
        return [word_from_json(item) for item in response.json()]

    async def custom_words(self, user_id: int) -> list[WordRecord]:
        response = await self._request("GET", "/api/word/custom", params={"userId": user_id})
        return [word_from_json(item) for item in response.json()]

    async def add_custom_word(self, user_id: int, text: str, translation: str) -> WordRecord:
        response = await self._request(
            "POST",
            "/api/word/custom",
            json={"userId": user_id, "text": text, "translation": translation},
        )
        return word_from_json(response.json())

    async def delete_custom_word(self, user_id: int, word_id: int) -> None:
        await self._request("DELETE", f"/api/word/custom/{word_id}", params={"userId": user_id})

    async def translate(self, text: str, target_language: str) -> TranslationResult:
        response = await self._request(
            "POST",
            "/api/translator/translate",
            json={"text": text, "targetLanguageCode": target_language},
        )
        payload = response.json()
        return TranslationResult(
            original_text=str(payload.get("originalText", text)),
            translated_text=str(payload.get("translatedText", "")),
            target_language=str(payload.get("targetLanguage", target_language)),
            source=payload.get("source", "yandex"),
        )

    async def save_translation(self, user_id: int, text: str, translation: str) -> WordRecord:
        response = await self._request(
            "POST",
            "/api/translator/save",
            json={"userId": user_id, "text": text, "translation": translation},
        )
        return word_from_json(response.json())

    async def generate_text(self, user_id: int) -> GeneratedStory:
        response = await self._request(
            "GET",
            "/api/textgeneration/generate",
            params={"userId": user_id},
            conflict=QuotaExceededError,
        )
        payload = response.json()
        return GeneratedStory(
            english_text=str(payload.get("englishText", "")),
            russian_text=str(payload.get("russianText", "")),
            words={str(key): str(value) for key, value in (payload.get("words") or {}).items()},
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        conflict: type[ConflictError] = ConflictError,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("Backend request %s %s failed: %s", method, path, exc)
            raise ExternalProviderError("Backend is unreachable", provider="backend") from exc

        if response.is_success:
            return response
        message = _message(response)
        logger.info("Backend %s %s -> %s: %s", method, path, response.status_code, message)
        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFoundError(message)
        if response.status_code == httpx.codes.CONFLICT:
            raise conflict(message)
        if response.status_code in (httpx.codes.BAD_REQUEST, httpx.codes.UNPROCESSABLE_ENTITY):
            raise InvalidInputError(message)
        raise ExternalProviderError(
            f"Backend error {response.status_code}: {message}",
            provider="backend",
            status_code=response.status_code,
        )
