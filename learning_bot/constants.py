from __future__ import annotations

from datetime import timedelta

SYSTEM_USER_ID = 0
MY_WORDS_CATEGORY = "My Words"

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Food",
    "Technology",
    "Business",
    "Travel",
    "Health",
    "Education",
    "Entertainment",
    "Sports",
)

DAILY_AI_REQUEST_LIMIT = 1
GENERATION_WORD_LIMIT = 10

GIGACHAT_TOKEN_SAFETY_MARGIN = timedelta(minutes=5)
YANDEX_TOKEN_SAFETY_MARGIN = timedelta(minutes=30)
YANDEX_IAM_TOKEN_LIFETIME = timedelta(hours=12)

TOKEN_REFRESH_CHECK_INTERVAL = timedelta(minutes=15)
TOKEN_REFRESH_WINDOW = timedelta(minutes=30)
TOKEN_REFRESH_RETRY_DELAY = timedelta(minutes=1)

DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_TOKEN_TIMEOUT_SECONDS = 10.0

CATEGORY_EMOJI: dict[str, str] = {
    "my words": "📝",
    "common words": "💬",
    "food": "🍎",
    "business": "💼",
    "technology": "💻",
    "travel": "✈️",
    "health": "🩺",
    "education": "📚",
    "entertainment": "🎬",
    "sports": "⚽",
}
