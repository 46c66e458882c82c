from __future__ import annotations

import logging
import re
import sys

_SECRET_SETTINGS = (
    "TELEGRAM_BOT_TOKEN",
    "GIGACHAT_AUTH_KEY",
    "YANDEX_OAUTH_TOKEN",
    "DATABASE_URL",
)
_MASK = "***REDACTED***"

_SECRET_PATTERNS = [
    *(re.compile(rf"({name}\s*=\s*)(\S+)", re.IGNORECASE) for name in _SECRET_SETTINGS),
    # Authorization headers of both providers
    re.compile(r"((?:Bearer|Basic)\s+)([A-Za-z0-9._\-+/=]{8,})"),
    # python-telegram-bot request URLs embed the token
    re.compile(r"(/bot)(\d+:[A-Za-z0-9_\-]+)"),
    re.compile(r"(postgres(?:ql)?://[^:/\s]+:)([^@\s]+)(?=@)"),
]

_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def redact(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(rf"\g<1>{_MASK}", text)
    return text


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def configure_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RedactingFilter())
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
