from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from learning_bot.constants import YANDEX_IAM_TOKEN_LIFETIME
from learning_bot.domain.errors import (
    ExternalProviderError,
    MalformedResponseError,
    TokenRefreshError,
)
from learning_bot.domain.models import LanguageInfo
from learning_bot.services.token_cache import TokenCache, TokenState
from learning_bot.services.yandex import (
    IAM_TOKEN_URL,
    LANGUAGES_URL,
    TRANSLATE_URL,
    YandexIamAuth,
    YandexTranslator,
    parse_expires_at,
)


class FakeYandex:
    def __init__(self, api_responses: list[httpx.Response] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.api_responses = api_responses or []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == IAM_TOKEN_URL:
            return httpx.Response(200, json={"iamToken": "iam-token"})
        if self.api_responses:
            return self.api_responses.pop(0)
        if str(request.url) == LANGUAGES_URL:
            return httpx.Response(
                200,
                json={"languages": [{"code": "ru", "name": "русский"}, {"code": "en"}, {"name": "?"}]},
            )
        return httpx.Response(200, json={"translations": [{"text": "привет"}]})


def _translator(fake: FakeYandex) -> tuple[YandexTranslator, TokenCache]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    tokens = TokenCache(
        "yandex",
        YandexIamAuth(client=client, oauth_token="oauth"),
        safety_margin=timedelta(minutes=30),
    )
    return YandexTranslator(client=client, tokens=tokens, folder_id="folder-1"), tokens


def test_parse_expires_at_trims_nanoseconds() -> None:
    parsed = parse_expires_at("2026-03-01T12:30:45.123456789Z")

    assert parsed == datetime(2026, 3, 1, 12, 30, 45, 123456, tzinfo=UTC)


def test_parse_expires_at_handles_plain_and_invalid_values() -> None:
    assert parse_expires_at("2026-03-01T12:30:45") == datetime(2026, 3, 1, 12, 30, 45, tzinfo=UTC)
    assert parse_expires_at("tomorrow") is None
    assert parse_expires_at("") is None
    assert parse_expires_at(None) is None


def test_iam_exchange_uses_expires_at() -> None:
    expires = datetime.now(UTC) + timedelta(hours=6)

    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"yandexPassportOauthToken": "oauth"}
        return httpx.Response(
            200, json={"iamToken": "t1", "expiresAt": expires.isoformat().replace("+00:00", "Z")}
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    issued = asyncio.run(YandexIamAuth(client=client, oauth_token="oauth")())

    assert issued.value == "t1"
    assert timedelta(hours=5, minutes=59) < issued.lifetime <= timedelta(hours=6)


def test_iam_exchange_defaults_lifetime() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"iamToken": "t1", "expiresAt": "garbage"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    issued = asyncio.run(YandexIamAuth(client=client, oauth_token="oauth")())

    assert issued.lifetime == YANDEX_IAM_TOKEN_LIFETIME


def test_iam_exchange_without_token_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"expiresAt": "2030-01-01T00:00:00Z"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(TokenRefreshError):
        asyncio.run(YandexIamAuth(client=client, oauth_token="oauth")())


def test_translate_request_shape() -> None:
    fake = FakeYandex()
    translator, _ = _translator(fake)

    translated = asyncio.run(translator.translate("hello", "ru"))

    request = fake.requests[-1]
    assert str(request.url) == TRANSLATE_URL
    assert request.headers["Authorization"] == "Bearer iam-token"
    assert json.loads(request.content) == {
        "folderId": "folder-1",
        "texts": ["hello"],
        "targetLanguageCode": "ru",
    }
    assert translated == "привет"


def test_empty_translations_is_malformed() -> None:
    fake = FakeYandex(api_responses=[httpx.Response(200, json={"translations": []})])
    translator, _ = _translator(fake)

    with pytest.raises(MalformedResponseError):
        asyncio.run(translator.translate("hello", "ru"))


def test_non_success_status_is_provider_error() -> None:
    fake = FakeYandex(api_responses=[httpx.Response(500, text="oops")])
    translator, _ = _translator(fake)

    with pytest.raises(ExternalProviderError) as excinfo:
        asyncio.run(translator.translate("hello", "ru"))
    assert excinfo.value.status_code == 500
    assert excinfo.value.provider == "yandex"


def test_unauthorized_drops_cached_token() -> None:
    fake = FakeYandex(api_responses=[httpx.Response(401, text="expired")])
    translator, tokens = _translator(fake)

    with pytest.raises(ExternalProviderError):
        asyncio.run(translator.translate("hello", "ru"))
    assert tokens.state() is TokenState.EXPIRED


def test_supported_languages_skips_entries_without_code() -> None:
    fake = FakeYandex()
    translator, _ = _translator(fake)

    languages = asyncio.run(translator.supported_languages())

    assert languages == [LanguageInfo(code="ru", name="русский"), LanguageInfo(code="en", name="")]
    assert json.loads(fake.requests[-1].content) == {"folderId": "folder-1"}
