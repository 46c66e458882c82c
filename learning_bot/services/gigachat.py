from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import httpx

from learning_bot.domain.errors import (
    ExternalProviderError,
    InvalidInputError,
    MalformedResponseError,
    TokenRefreshError,
)
from learning_bot.domain.models import GeneratedStory
from learning_bot.domain.story import build_story_prompt, parse_story
from learning_bot.services.token_cache import IssuedToken, TokenCache

logger = logging.getLogger(__name__)

_DEFAULT_TOKEN_LIFETIME = timedelta(minutes=30)


@dataclass(frozen=True, slots=True)
class GigaChatAuth:
    """Exchanges the Basic authorization key for a short-lived bearer token."""

    client: httpx.AsyncClient
    auth_key: str
    oauth_url: str
    scope: str = "GIGACHAT_API_PERS"
    timeout_seconds: float = 10.0

    async def __call__(self) -> IssuedToken:
        try:
            response = await self.client.post(
                self.oauth_url,
                headers={
                    "Accept": "application/json",
                    "RqUID": str(uuid.uuid4()),
                    "Authorization": f"Basic {self.auth_key}",
                },
                data={"scope": self.scope},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise TokenRefreshError("GigaChat token request failed", provider="gigachat") from exc

        if response.is_error:
            raise TokenRefreshError(
                f"GigaChat token request failed with HTTP {response.status_code}",
                provider="gigachat",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
            token = str(payload["access_token"]).strip()
        except (ValueError, KeyError, TypeError) as exc:
            raise TokenRefreshError(
                "GigaChat token response has no access_token", provider="gigachat"
            ) from exc
        return IssuedToken(value=token, lifetime=_token_lifetime(payload))


def _token_lifetime(payload: Mapping[str, Any]) -> timedelta:
    expires_at = payload.get("expires_at")
    if isinstance(expires_at, (int, float)) and expires_at > 0:
        # expires_at is a unix timestamp in milliseconds
        remaining = expires_at / 1000 - time.time()
        if remaining > 0:
            return timedelta(seconds=remaining)
    expires_in = payload.get("expires_in")
    if isinstance(expires_in, (int, float)) and expires_in > 0:
        return timedelta(seconds=expires_in)
    return _DEFAULT_TOKEN_LIFETIME


@dataclass(frozen=True, slots=True)
class GigaChatStoryGenerator:
    client: httpx.AsyncClient
    tokens: TokenCache
    api_url: str
    model: str = "GigaChat"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout_seconds: float = 30.0

    async def generate(self, words: Mapping[str, str]) -> GeneratedStory:
        if not words:
            raise InvalidInputError("No words provided for text generation")
        prompt = build_story_prompt(words)
        logger.info("Requesting GigaChat story for %d words", len(words))
        content = await self.complete(prompt)
        story = parse_story(content, words)
        logger.info(
            "GigaChat story parsed: %d chars english, %d used words",
            len(story.english_text),
            len(story.used_words),
        )
        return story

    async def complete(self, prompt: str) -> str:
        token = await self.tokens.get_token()
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        try:
            response = await self.client.post(
                self.api_url,
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {token}",
                },
                json=payload,
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise ExternalProviderError("GigaChat request failed", provider="gigachat") from exc

        if response.status_code == httpx.codes.UNAUTHORIZED:
            await self.tokens.invalidate(token)
        if response.is_error:
            logger.error(
                "GigaChat HTTP error %s: %s", response.status_code, response.text[:500]
            )
            raise ExternalProviderError(
                f"GigaChat HTTP error {response.status_code}",
                provider="gigachat",
                status_code=response.status_code,
            )
        return _extract_content(response)


def _extract_content(response: httpx.Response) -> str:
    try:
        parsed = response.json()
        content = parsed["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError(
            "GigaChat response has no message content", provider="gigachat"
        ) from exc
    text = str(content or "").strip()
    if not text:
        raise MalformedResponseError("GigaChat returned empty content", provider="gigachat")
    return text
