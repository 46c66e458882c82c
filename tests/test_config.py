import logging

import pytest

from learning_bot import config
from learning_bot.config import ConfigError, load_api_settings, load_bot_settings
from learning_bot.logging_setup import RedactingFilter, redact

API_ENV = {
    "DATABASE_URL": "postgresql://app:secret@db/learning",
    "GIGACHAT_AUTH_KEY": "giga-key",
    "YANDEX_OAUTH_TOKEN": "yandex-oauth",
    "YANDEX_FOLDER_ID": "folder-1",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    monkeypatch.setattr(config, "load_dotenv", lambda **kwargs: False)
    for name in (
        *API_ENV,
        "TELEGRAM_BOT_TOKEN",
        "BACKEND_API_URL",
        "API_PORT",
        "HTTP_TIMEOUT_SECONDS",
        "GENERATION_FALLBACK",
        "GIGACHAT_VERIFY_SSL",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_api_settings_defaults(monkeypatch) -> None:
    for name, value in API_ENV.items():
        monkeypatch.setenv(name, value)

    settings = load_api_settings()

    assert settings.port == 8000
    assert settings.generation_fallback is False
    assert settings.gigachat_verify_ssl is True
    assert settings.http_timeout_seconds == 30.0
    safe = settings.safe_log_values()
    assert safe["database_url"] == "[redacted]"
    assert safe["gigachat_auth_key"] == "[redacted]"
    assert "secret" not in str(safe)


def test_api_settings_overrides(monkeypatch) -> None:
    for name, value in API_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("API_PORT", "9000")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "0.2")
    monkeypatch.setenv("GENERATION_FALLBACK", "yes")
    monkeypatch.setenv("GIGACHAT_VERIFY_SSL", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_api_settings()

    assert settings.port == 9000
    assert settings.http_timeout_seconds == 1.0
    assert settings.generation_fallback is True
    assert settings.gigachat_verify_ssl is False
    assert settings.log_level == "DEBUG"


def test_api_settings_require_secrets(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", API_ENV["DATABASE_URL"])

    with pytest.raises(ConfigError, match="GIGACHAT_AUTH_KEY"):
        load_api_settings()


def test_memory_mode_does_not_need_database(monkeypatch) -> None:
    for name, value in API_ENV.items():
        if name != "DATABASE_URL":
            monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError, match="DATABASE_URL"):
        load_api_settings()
    assert load_api_settings(require_database=False).database_url == ""


def test_bad_port_is_config_error(monkeypatch) -> None:
    for name, value in API_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("API_PORT", "eighty")

    with pytest.raises(ConfigError):
        load_api_settings()


def test_bot_settings_strip_trailing_slash(monkeypatch) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("BACKEND_API_URL", "http://localhost:8000/")

    settings = load_bot_settings()

    assert settings.backend_api_url == "http://localhost:8000"
    assert settings.safe_log_values()["telegram_bot_token"] == "[redacted]"


def test_bot_settings_require_token() -> None:
    with pytest.raises(ConfigError, match="TELEGRAM_BOT_TOKEN"):
        load_bot_settings()


def test_redacting_filter_hides_tokens() -> None:
    record = logging.LogRecord(
        "httpx", logging.INFO, __file__, 1, "POST %s Authorization: Bearer %s", ("/bot123:abcDEF/send", "t0ken-value-123"), None
    )

    RedactingFilter().filter(record)

    message = record.getMessage()
    assert "abcDEF" not in message
    assert "t0ken-value-123" not in message
    assert "***REDACTED***" in message


def test_redact_masks_database_password() -> None:
    text = redact("connecting to postgresql://app:s3cret@db:5432/learning")

    assert "s3cret" not in text
    assert text == "connecting to postgresql://app:***REDACTED***@db:5432/learning"
