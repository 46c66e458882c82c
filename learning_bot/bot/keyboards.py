from __future__ import annotations

from collections.abc import Iterable

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from learning_bot.domain.models import CategoryRecord, WordRecord
from learning_bot.utils.formatting import category_label

RETURN_MENU = "return_menu"
LEARN_MENU = "learn_menu"
LEARN_PREFIX = "learn_"
KNOWN_PREFIX = "known_"
SHOW_TRANSLATION_PREFIX = "show_translation_"
NEXT_PREFIX = "next_"
ADD_WORD = "add_word"
SHOW_VOCABULARY = "show_vocabulary"
SHOW_MY_WORDS = "show_my_words"
DELETE_MY_WORD_PREFIX = "delete_myword_"
GENERATE_TEXT = "generate_text"
PRACTISE_MENU = "practise_menu"
PRACTISE_PREFIX = "practise_"
PRACTISE_MY_WORDS = "practise_my"
TRANSLATION_MENU = "translation_menu"
TRANSLATE_RU_EN = "local_trans_ru_en"
TRANSLATE_EN_RU = "local_trans_en_ru"
SAVE_TRANSLATION = "save_translation"

LEARN_PATTERN = r"^learn_(\d+|all)$"
KNOWN_PATTERN = r"^known_\d+$"
SHOW_TRANSLATION_PATTERN = r"^show_translation_\d+$"
NEXT_PATTERN = r"^next_(\d+|all)$"
DELETE_MY_WORD_PATTERN = r"^delete_myword_\d+$"
PRACTISE_PATTERN = r"^practise_(\d+|all|my)$"
TRANSLATE_DIRECTION_PATTERN = rf"^({TRANSLATE_RU_EN}|{TRANSLATE_EN_RU})$"

BACK_TO_MENU_BUTTON = InlineKeyboardButton("🔙 В меню", callback_data=RETURN_MENU)


def _chunked(
    buttons: Iterable[InlineKeyboardButton], columns: int = 2
) -> list[list[InlineKeyboardButton]]:
    rows: list[list[InlineKeyboardButton]] = []
    row: list[InlineKeyboardButton] = []
    for button in buttons:
        row.append(button)
        if len(row) == columns:
            rows.append(row)
            row = []
    if row:
        rows.append(row)
    return rows


def parse_suffix(data: str, prefix: str) -> str | None:
    if not data.startswith(prefix):
        return None
    return data.removeprefix(prefix) or None


def back_to_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[BACK_TO_MENU_BUTTON]])


def main_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("📚 Учить слова", callback_data=LEARN_MENU),
                InlineKeyboardButton("📝 Добавить слово", callback_data=ADD_WORD),
            ],
            [
                InlineKeyboardButton("📖 Изученные слова", callback_data=SHOW_VOCABULARY),
                InlineKeyboardButton("📝 Мои слова", callback_data=SHOW_MY_WORDS),
            ],
            [
                InlineKeyboardButton("✍️ Генерировать текст", callback_data=GENERATE_TEXT),
                InlineKeyboardButton("📚 Практика", callback_data=PRACTISE_MENU),
            ],
            [InlineKeyboardButton("📖 Переводчик", callback_data=TRANSLATION_MENU)],
        ]
    )


def learn_categories(categories: Iterable[CategoryRecord]) -> InlineKeyboardMarkup:
    buttons = [
        InlineKeyboardButton(category_label(item.name), callback_data=f"{LEARN_PREFIX}{item.id}")
        for item in categories
    ]
    rows = _chunked(buttons)
    rows.append([InlineKeyboardButton("📚 Все категории", callback_data=f"{LEARN_PREFIX}all")])
    rows.append([BACK_TO_MENU_BUTTON])
    return InlineKeyboardMarkup(rows)


def learning_word(word_id: int, category: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("✅ Знаю это слово", callback_data=f"{KNOWN_PREFIX}{word_id}"),
                InlineKeyboardButton(
                    "❓ Показать перевод", callback_data=f"{SHOW_TRANSLATION_PREFIX}{word_id}"
                ),
            ],
            [
                InlineKeyboardButton("➡️ Следующее слово", callback_data=f"{NEXT_PREFIX}{category}"),
                InlineKeyboardButton("🔙 К категориям", callback_data=LEARN_MENU),
            ],
            [BACK_TO_MENU_BUTTON],
        ]
    )


def translated_word(word_id: int, category: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("✅ Знаю это слово", callback_data=f"{KNOWN_PREFIX}{word_id}"),
                InlineKeyboardButton("➡️ Следующее слово", callback_data=f"{NEXT_PREFIX}{category}"),
            ],
            [BACK_TO_MENU_BUTTON],
        ]
    )


def category_exhausted() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("📝 Добавить слово", callback_data=ADD_WORD),
                InlineKeyboardButton("🔄 Другая категория", callback_data=LEARN_MENU),
            ],
            [BACK_TO_MENU_BUTTON],
        ]
    )


def my_words(words: Iterable[WordRecord]) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                f"🗑 {word.text}", callback_data=f"{DELETE_MY_WORD_PREFIX}{word.id}"
            )
        ]
        for word in words
    ]
    rows.append([InlineKeyboardButton("📝 Добавить слово", callback_data=ADD_WORD)])
    rows.append([BACK_TO_MENU_BUTTON])
    return InlineKeyboardMarkup(rows)


def practise_categories(categories: Iterable[CategoryRecord]) -> InlineKeyboardMarkup:
    buttons = [
        InlineKeyboardButton(category_label(item.name), callback_data=f"{PRACTISE_PREFIX}{item.id}")
        for item in categories
    ]
    rows = _chunked(buttons)
    rows.append([InlineKeyboardButton("📚 Все категории", callback_data=f"{PRACTISE_PREFIX}all")])
    rows.append([InlineKeyboardButton("📝 Мои слова", callback_data=PRACTISE_MY_WORDS)])
    rows.append([BACK_TO_MENU_BUTTON])
    return InlineKeyboardMarkup(rows)


def translation_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("🇷🇺 → 🇬🇧", callback_data=TRANSLATE_RU_EN),
                InlineKeyboardButton("🇬🇧 → 🇷🇺", callback_data=TRANSLATE_EN_RU),
            ],
            [BACK_TO_MENU_BUTTON],
        ]
    )


def translation_result() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton("💾 Сохранить в мои слова", callback_data=SAVE_TRANSLATION)],
            [InlineKeyboardButton("🔄 Сменить направление", callback_data=TRANSLATION_MENU)],
            [BACK_TO_MENU_BUTTON],
        ]
    )


def generated_text() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("🔄 Сгенерировать новый текст", callback_data=GENERATE_TEXT),
                InlineKeyboardButton("📚 Учить слова", callback_data=LEARN_MENU),
            ],
            [BACK_TO_MENU_BUTTON],
        ]
    )
