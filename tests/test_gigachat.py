from __future__ import annotations

import asyncio
import json
import time
from datetime import timedelta

import httpx
import pytest

from learning_bot.domain.errors import (
    ExternalProviderError,
    InvalidInputError,
    MalformedResponseError,
    TokenRefreshError,
)
from learning_bot.services.gigachat import GigaChatAuth, GigaChatStoryGenerator
from learning_bot.services.token_cache import TokenCache, TokenState

OAUTH_URL = "https://auth.test/api/v2/oauth"
CHAT_URL = "https://chat.test/api/v1/chat/completions"

STORY = (
    "===ENGLISH_TEXT_START===\nAn apple.\n===ENGLISH_TEXT_END===\n"
    "===RUSSIAN_TEXT_START===\nЯблоко.\n===RUSSIAN_TEXT_END===\n"
    "===USED_WORDS_START===\napple: яблоко\n===USED_WORDS_END==="
)


class FakeGigaChat:
    def __init__(self, chat_responses: list[httpx.Response] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.chat_responses = chat_responses or []
        self.token_calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == OAUTH_URL:
            self.token_calls += 1
            return httpx.Response(
                200,
                json={
                    "access_token": f"giga-{self.token_calls}",
                    "expires_at": int((time.time() + 1800) * 1000),
                },
            )
        if self.chat_responses:
            return self.chat_responses.pop(0)
        return httpx.Response(200, json={"choices": [{"message": {"content": STORY}}]})


def _generator(fake: FakeGigaChat) -> tuple[GigaChatStoryGenerator, TokenCache]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    tokens = TokenCache(
        "gigachat",
        GigaChatAuth(client=client, auth_key="c2VjcmV0", oauth_url=OAUTH_URL),
        safety_margin=timedelta(minutes=5),
    )
    return GigaChatStoryGenerator(client=client, tokens=tokens, api_url=CHAT_URL), tokens


def test_auth_request_shape_and_lifetime() -> None:
    fake = FakeGigaChat()
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    auth = GigaChatAuth(client=client, auth_key="c2VjcmV0", oauth_url=OAUTH_URL)

    issued = asyncio.run(auth())

    request = fake.requests[0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Basic c2VjcmV0"
    assert request.headers["RqUID"]
    assert request.content == b"scope=GIGACHAT_API_PERS"
    assert issued.value == "giga-1"
    assert timedelta(minutes=29) < issued.lifetime <= timedelta(minutes=30)


def test_auth_uses_expires_in_when_no_timestamp() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "tok", "expires_in": 600})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    issued = asyncio.run(GigaChatAuth(client=client, auth_key="k", oauth_url=OAUTH_URL)())

    assert issued.lifetime == timedelta(seconds=600)


def test_auth_failure_raises_token_refresh_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "bad key"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(TokenRefreshError) as excinfo:
        asyncio.run(GigaChatAuth(client=client, auth_key="k", oauth_url=OAUTH_URL)())
    assert excinfo.value.status_code == 401


def test_generate_sends_bearer_token_and_parses_story() -> None:
    fake = FakeGigaChat()
    generator, _ = _generator(fake)

    story = asyncio.run(generator.generate({"apple": "яблоко"}))

    chat_request = fake.requests[-1]
    assert chat_request.headers["Authorization"] == "Bearer giga-1"
    body = json.loads(chat_request.content)
    assert body["model"] == "GigaChat"
    assert "apple (яблоко)" in body["messages"][0]["content"]
    assert story.english_text == "An apple."
    assert story.used_words == {"apple": "яблоко"}


def test_token_is_reused_across_generations() -> None:
    fake = FakeGigaChat()
    generator, _ = _generator(fake)

    async def run_case():
        await generator.generate({"apple": "яблоко"})
        await generator.generate({"apple": "яблоко"})

    asyncio.run(run_case())
    assert fake.token_calls == 1


def test_unauthorized_invalidates_token() -> None:
    fake = FakeGigaChat(chat_responses=[httpx.Response(401, text="expired")])
    generator, tokens = _generator(fake)

    with pytest.raises(ExternalProviderError) as excinfo:
        asyncio.run(generator.generate({"apple": "яблоко"}))

    assert excinfo.value.status_code == 401
    assert tokens.state() is TokenState.EXPIRED


def test_server_error_is_provider_error() -> None:
    fake = FakeGigaChat(chat_responses=[httpx.Response(503, text="busy")])
    generator, tokens = _generator(fake)

    with pytest.raises(ExternalProviderError) as excinfo:
        asyncio.run(generator.generate({"apple": "яблоко"}))

    assert excinfo.value.provider == "gigachat"
    assert tokens.state() is TokenState.VALID


def test_empty_choices_is_malformed() -> None:
    fake = FakeGigaChat(chat_responses=[httpx.Response(200, json={"choices": []})])
    generator, _ = _generator(fake)

    with pytest.raises(MalformedResponseError):
        asyncio.run(generator.generate({"apple": "яблоко"}))


def test_generate_requires_words() -> None:
    fake = FakeGigaChat()
    generator, _ = _generator(fake)

    with pytest.raises(InvalidInputError):
        asyncio.run(generator.generate({}))
    assert fake.requests == []
