from __future__ import annotations

from collections.abc import Iterable

from learning_bot.constants import CATEGORY_EMOJI
from learning_bot.domain.models import GeneratedStory, WordRecord

_DEFAULT_CATEGORY_EMOJI = "📚"
TELEGRAM_MESSAGE_LIMIT = 4096


def category_emoji(name: str | None) -> str:
    if not name:
        return _DEFAULT_CATEGORY_EMOJI
    return CATEGORY_EMOJI.get(name.strip().lower(), _DEFAULT_CATEGORY_EMOJI)


def category_label(name: str) -> str:
    return f"{category_emoji(name)} {name}"


def format_word_card(word: WordRecord) -> str:
    lines = [f"📝 Слово: {word.text}"]
    if word.category:
        lines.append(f"{category_emoji(word.category)} Категория: {word.category}")
    return "\n".join(lines)


def format_word_with_translation(word: WordRecord) -> str:
    return f"{format_word_card(word)}\n🔤 Перевод: {word.translation}"


def format_word_list(title: str, words: Iterable[WordRecord]) -> str:
    """Groups words by category, one ``text - translation`` line per word."""
    grouped: dict[str, list[WordRecord]] = {}
    for word in words:
        grouped.setdefault(word.category or "Без категории", []).append(word)
    if not grouped:
        return ""
    lines = [title]
    for category, items in grouped.items():
        lines.append("")
        lines.append(category_label(category))
        lines.extend(f"• {word.text} - {word.translation}" for word in items)
    return "\n".join(lines)


def format_story(story: GeneratedStory) -> str:
    lines = [
        "🇬🇧 Текст на английском:",
        story.english_text,
        "",
        "🇷🇺 Перевод:",
        story.russian_text,
    ]
    if story.words:
        lines.append("")
        lines.append("📚 Использованные слова:")
        lines.extend(f"• {word} - {translation}" for word, translation in story.words.items())
    return "\n".join(lines)


def split_message(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> list[str]:
    if len(text) <= limit:
        return [text]
    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks
