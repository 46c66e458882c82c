from __future__ import annotations

from collections.abc import Mapping

from learning_bot.domain.errors import MalformedResponseError
from learning_bot.domain.models import GeneratedStory

ENGLISH_TEXT_START = "===ENGLISH_TEXT_START==="
ENGLISH_TEXT_END = "===ENGLISH_TEXT_END==="
RUSSIAN_TEXT_START = "===RUSSIAN_TEXT_START==="
RUSSIAN_TEXT_END = "===RUSSIAN_TEXT_END==="
USED_WORDS_START = "===USED_WORDS_START==="
USED_WORDS_END = "===USED_WORDS_END==="


def build_story_prompt(words: Mapping[str, str]) -> str:
    word_pairs = ", ".join(f"{word} ({translation})" for word, translation in words.items())
    return (
        "Create a bilingual story using the following English words with their "
        f"Russian translations: {word_pairs}.\n\n"
        "Instructions:\n"
        "1. Write an engaging paragraph in English using all the English words naturally in context.\n"
        "2. Write a Russian translation of the same story.\n"
        "3. List every provided word you used, one per line, as 'word: translation'.\n"
        "4. Keep the story short, connected and meaningful.\n\n"
        "Format your response exactly as:\n"
        f"{ENGLISH_TEXT_START}\n[English text]\n{ENGLISH_TEXT_END}\n"
        f"{RUSSIAN_TEXT_START}\n[Russian translation]\n{RUSSIAN_TEXT_END}\n"
        f"{USED_WORDS_START}\nword: translation\n{USED_WORDS_END}"
    )


def extract_section(text: str, start_marker: str, end_marker: str) -> str | None:
    start = text.find(start_marker)
    if start < 0:
        return None
    start += len(start_marker)
    end = text.find(end_marker, start)
    if end < 0:
        return None
    return text[start:end].strip()


def parse_used_words(section: str) -> dict[str, str]:
    used: dict[str, str] = {}
    for line in section.splitlines():
        word, separator, translation = line.partition(":")
        word = word.strip().lstrip("-•* ").strip()
        translation = translation.strip()
        if not separator or not word or not translation:
            continue
        used[word] = translation
    return used


def parse_story(text: str, words: Mapping[str, str]) -> GeneratedStory:
    english = extract_section(text, ENGLISH_TEXT_START, ENGLISH_TEXT_END)
    russian = extract_section(text, RUSSIAN_TEXT_START, RUSSIAN_TEXT_END)
    used_section = extract_section(text, USED_WORDS_START, USED_WORDS_END)

    missing = [
        name
        for name, value in (
            ("english text", english),
            ("russian text", russian),
            ("used words", used_section),
        )
        if not value
    ]
    if missing:
        raise MalformedResponseError(
            f"Generated story is missing sections: {', '.join(missing)}",
            provider="gigachat",
        )

    return GeneratedStory(
        english_text=english,
        russian_text=russian,
        words=dict(words),
        used_words=parse_used_words(used_section),
    )


def build_fallback_story(words: Mapping[str, str]) -> GeneratedStory:
    english_lines = [f"The word '{word}' in English." for word in words]
    russian_lines = [
        f"Слово '{word}' переводится как '{translation}'."
        for word, translation in words.items()
    ]
    return GeneratedStory(
        english_text="\n".join(english_lines),
        russian_text="\n".join(russian_lines),
        words=dict(words),
        used_words=dict(words),
        is_fallback=True,
    )
