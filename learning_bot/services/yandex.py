from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from learning_bot.constants import YANDEX_IAM_TOKEN_LIFETIME
from learning_bot.domain.errors import (
    ExternalProviderError,
    MalformedResponseError,
    TokenRefreshError,
)
from learning_bot.domain.models import LanguageInfo
from learning_bot.services.token_cache import IssuedToken, TokenCache

logger = logging.getLogger(__name__)

IAM_TOKEN_URL = "https://iam.api.cloud.yandex.net/iam/v1/tokens"
TRANSLATE_URL = "https://translate.api.cloud.yandex.net/translate/v2/translate"
LANGUAGES_URL = "https://translate.api.cloud.yandex.net/translate/v2/languages"

_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


def parse_expires_at(value: object) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    # Yandex sends nanosecond precision which fromisoformat does not accept
    normalized = _FRACTION_RE.sub(r".\1", value.strip()).replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True, slots=True)
class YandexIamAuth:
    """Exchanges the Yandex Passport OAuth token for an IAM token."""

    client: httpx.AsyncClient
    oauth_token: str
    url: str = IAM_TOKEN_URL
    timeout_seconds: float = 10.0

    async def __call__(self) -> IssuedToken:
        try:
            response = await self.client.post(
                self.url,
                json={"yandexPassportOauthToken": self.oauth_token},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise TokenRefreshError("Yandex IAM token request failed", provider="yandex") from exc

        if response.is_error:
            raise TokenRefreshError(
                f"Yandex IAM token request failed with HTTP {response.status_code}",
                provider="yandex",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
            token = str(payload["iamToken"]).strip()
        except (ValueError, KeyError, TypeError) as exc:
            raise TokenRefreshError(
                "Yandex IAM response has no iamToken", provider="yandex"
            ) from exc

        lifetime = YANDEX_IAM_TOKEN_LIFETIME
        expires_at = parse_expires_at(payload.get("expiresAt"))
        if expires_at is not None:
            remaining = expires_at - datetime.now(UTC)
            if remaining > timedelta(0):
                lifetime = remaining
        return IssuedToken(value=token, lifetime=lifetime)


@dataclass(frozen=True, slots=True)
class YandexTranslator:
    client: httpx.AsyncClient
    tokens: TokenCache
    folder_id: str
    translate_url: str = TRANSLATE_URL
    languages_url: str = LANGUAGES_URL
    timeout_seconds: float = 30.0

    async def translate(self, text: str, target_language: str) -> str:
        payload = await self._post(
            self.translate_url,
            {
                "folderId": self.folder_id,
                "texts": [text],
                "targetLanguageCode": target_language,
            },
        )
        translations = payload.get("translations")
        if not isinstance(translations, list) or not translations:
            raise MalformedResponseError("Yandex returned no translations", provider="yandex")
        first = translations[0]
        translated = str(first.get("text", "")).strip() if isinstance(first, dict) else ""
        if not translated:
            raise MalformedResponseError("Yandex returned an empty translation", provider="yandex")
        return translated

    async def supported_languages(self) -> list[LanguageInfo]:
        payload = await self._post(self.languages_url, {"folderId": self.folder_id})
        languages = payload.get("languages", [])
        if not isinstance(languages, list):
            raise MalformedResponseError("Yandex languages payload is not a list", provider="yandex")
        return [
            LanguageInfo(code=str(item.get("code", "")), name=str(item.get("name", "")))
            for item in languages
            if isinstance(item, dict) and item.get("code")
        ]

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        token = await self.tokens.get_token()
        try:
            response = await self.client.post(
                url,
                headers={"Authorization": f"Bearer {token}"},
                json=body,
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise ExternalProviderError("Yandex Translate request failed", provider="yandex") from exc

        if response.status_code == httpx.codes.UNAUTHORIZED:
            await self.tokens.invalidate(token)
        if response.is_error:
            logger.error(
                "Yandex Translate HTTP error %s: %s", response.status_code, response.text[:500]
            )
            raise ExternalProviderError(
                f"Yandex Translate HTTP error {response.status_code}",
                provider="yandex",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Yandex returned invalid JSON", provider="yandex") from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError("Yandex returned unexpected JSON", provider="yandex")
        return payload
