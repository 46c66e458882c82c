from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from learning_bot.constants import DEFAULT_HTTP_TIMEOUT_SECONDS, DEFAULT_TOKEN_TIMEOUT_SECONDS


class ConfigError(ValueError):
    """Raised when required environment configuration is missing."""


def _mask_secret(value: str) -> str:
    return "[redacted]" if value else ""


@dataclass(frozen=True)
class ApiSettings:
    database_url: str
    gigachat_auth_key: str
    yandex_oauth_token: str
    yandex_folder_id: str
    gigachat_scope: str = "GIGACHAT_API_PERS"
    gigachat_oauth_url: str = "https://ngw.devices.sberbank.ru:9443/api/v2/oauth"
    gigachat_api_url: str = "https://gigachat.devices.sberbank.ru/api/v1/chat/completions"
    gigachat_model: str = "GigaChat"
    gigachat_verify_ssl: bool = True
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    token_timeout_seconds: float = DEFAULT_TOKEN_TIMEOUT_SECONDS
    generation_fallback: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    def safe_log_values(self) -> dict[str, str]:
        return {
            "database_url": _mask_secret(self.database_url),
            "gigachat_auth_key": _mask_secret(self.gigachat_auth_key),
            "yandex_oauth_token": _mask_secret(self.yandex_oauth_token),
            "yandex_folder_id": self.yandex_folder_id,
            "gigachat_scope": self.gigachat_scope,
            "gigachat_oauth_url": self.gigachat_oauth_url,
            "gigachat_api_url": self.gigachat_api_url,
            "gigachat_model": self.gigachat_model,
            "gigachat_verify_ssl": str(self.gigachat_verify_ssl),
            "http_timeout_seconds": str(self.http_timeout_seconds),
            "token_timeout_seconds": str(self.token_timeout_seconds),
            "generation_fallback": str(self.generation_fallback),
            "host": self.host,
            "port": str(self.port),
            "log_level": self.log_level,
        }


@dataclass(frozen=True)
class BotSettings:
    telegram_bot_token: str
    backend_api_url: str
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    log_level: str = "INFO"

    def safe_log_values(self) -> dict[str, str]:
        return {
            "telegram_bot_token": _mask_secret(self.telegram_bot_token),
            "backend_api_url": self.backend_api_url,
            "http_timeout_seconds": str(self.http_timeout_seconds),
            "log_level": self.log_level,
        }


def _require(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def _optional(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def _parse_seconds(name: str, default: float, *, minimum: float = 1.0) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(minimum, float(raw))
    except ValueError:
        return default


def _parse_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _parse_port(raw: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"API_PORT must be an integer, got: {raw}") from exc


def _log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def load_api_settings(*, require_database: bool = True) -> ApiSettings:
    load_dotenv(override=False)
    database_url = (
        _require("DATABASE_URL")
        if require_database
        else os.getenv("DATABASE_URL", "").strip()
    )
    return ApiSettings(
        database_url=database_url,
        gigachat_auth_key=_require("GIGACHAT_AUTH_KEY"),
        yandex_oauth_token=_require("YANDEX_OAUTH_TOKEN"),
        yandex_folder_id=_require("YANDEX_FOLDER_ID"),
        gigachat_scope=_optional("GIGACHAT_SCOPE", "GIGACHAT_API_PERS"),
        gigachat_oauth_url=_optional(
            "GIGACHAT_OAUTH_URL", "https://ngw.devices.sberbank.ru:9443/api/v2/oauth"
        ),
        gigachat_api_url=_optional(
            "GIGACHAT_API_URL",
            "https://gigachat.devices.sberbank.ru/api/v1/chat/completions",
        ),
        gigachat_model=_optional("GIGACHAT_MODEL", "GigaChat"),
        gigachat_verify_ssl=_parse_bool("GIGACHAT_VERIFY_SSL", True),
        http_timeout_seconds=_parse_seconds("HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        token_timeout_seconds=_parse_seconds(
            "TOKEN_TIMEOUT_SECONDS", DEFAULT_TOKEN_TIMEOUT_SECONDS
        ),
        generation_fallback=_parse_bool("GENERATION_FALLBACK", False),
        host=_optional("API_HOST", "0.0.0.0"),
        port=_parse_port(_optional("API_PORT", "8000")),
        log_level=_log_level(),
    )


def load_bot_settings() -> BotSettings:
    load_dotenv(override=False)
    return BotSettings(
        telegram_bot_token=_require("TELEGRAM_BOT_TOKEN"),
        backend_api_url=_require("BACKEND_API_URL").rstrip("/"),
        http_timeout_seconds=_parse_seconds("HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        log_level=_log_level(),
    )
