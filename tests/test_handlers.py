from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

from learning_bot.bot.handlers.learning import known_callback, send_learning_word
from learning_bot.bot.handlers.practice import is_correct_answer, send_practice_word
from learning_bot.bot.handlers.router import stateful_text_router
from learning_bot.bot.handlers.translation import handle_translation_text
from learning_bot.bot.runtime_keys import BACKEND_CLIENT_KEY, SESSION_STORE_KEY
from learning_bot.bot.sessions import SessionStore, Stage
from learning_bot.domain.errors import NoWordsAvailableError, NotFoundError
from learning_bot.domain.models import TranslationResult, WordRecord

APPLE = WordRecord(
    id=1, text="apple", translation="яблоко", category_id=1, category="Food", user_id=0, is_custom=False
)


def _update(text: str | None = None, data: str | None = None):
    message = SimpleNamespace(text=text, reply_text=AsyncMock())
    query = SimpleNamespace(data=data, answer=AsyncMock()) if data is not None else None
    return SimpleNamespace(
        effective_chat=SimpleNamespace(id=100),
        effective_user=SimpleNamespace(id=42),
        effective_message=message,
        callback_query=query,
    )


def _context(backend) -> SimpleNamespace:
    store = SessionStore()
    bot_data = {BACKEND_CLIENT_KEY: backend, SESSION_STORE_KEY: store}
    return SimpleNamespace(application=SimpleNamespace(bot_data=bot_data))


def _replies(update) -> list[str]:
    return [call.args[0] for call in update.effective_message.reply_text.await_args_list]


def test_is_correct_answer() -> None:
    assert is_correct_answer("Apple", " apple ")
    assert not is_correct_answer("apple", "apples")
    assert not is_correct_answer("", "  ")


def test_add_word_dialog_creates_custom_word() -> None:
    backend = SimpleNamespace(add_custom_word=AsyncMock(return_value=APPLE))
    context = _context(backend)
    context.application.bot_data[SESSION_STORE_KEY].set_stage(100, Stage.ADDING_WORD_TEXT)

    async def run_case():
        first = _update(text="apple")
        await stateful_text_router(first, context)
        second = _update(text="яблоко")
        await stateful_text_router(second, context)
        return first, second

    first, second = asyncio.run(run_case())
    backend.add_custom_word.assert_awaited_once_with(42, "apple", "яблоко")
    assert "apple" in _replies(first)[0]
    assert "добавлено" in _replies(second)[0]
    assert context.application.bot_data[SESSION_STORE_KEY].get(100).stage is Stage.IDLE


def test_practice_answer_is_checked_and_next_word_sent() -> None:
    backend = SimpleNamespace(random_word=AsyncMock(return_value=APPLE))
    context = _context(backend)

    async def run_case():
        prompt = _update(data="practise_1")
        await send_practice_word(prompt, context, "1")
        answer = _update(text="Apple")
        await stateful_text_router(answer, context)
        return answer

    answer = asyncio.run(run_case())
    replies = _replies(answer)
    assert replies[0] == "✅ Правильно!"
    assert "яблоко" in replies[1]
    backend.random_word.assert_awaited_with(42, 1)


def test_practice_without_words_resets_session() -> None:
    backend = SimpleNamespace(random_custom_word=AsyncMock(side_effect=NotFoundError("none")))
    context = _context(backend)
    update = _update(data="practise_my")

    asyncio.run(send_practice_word(update, context, "my"))

    assert context.application.bot_data[SESSION_STORE_KEY].get(100).stage is Stage.IDLE
    assert "Нет доступных слов" in _replies(update)[0]


def test_translation_keeps_english_russian_pair() -> None:
    backend = SimpleNamespace(
        translate=AsyncMock(
            return_value=TranslationResult(
                original_text="яблоко", translated_text="apple", target_language="en", source="yandex"
            )
        )
    )
    context = _context(backend)
    context.application.bot_data[SESSION_STORE_KEY].set_stage(100, Stage.TRANSLATING_RU_EN)
    update = _update(text="яблоко")

    handled = asyncio.run(handle_translation_text(update, context))

    assert handled is True
    backend.translate.assert_awaited_once_with("яблоко", "en")
    session = context.application.bot_data[SESSION_STORE_KEY].get(100)
    assert session.last_translation == ("apple", "яблоко")


def test_exhausted_category_offers_other_options() -> None:
    backend = SimpleNamespace(word_for_learning=AsyncMock(side_effect=NoWordsAvailableError("done")))
    context = _context(backend)
    update = _update(data="learn_1")

    asyncio.run(send_learning_word(update, context, "1"))

    assert "все слова" in _replies(update)[0]


def test_known_word_is_saved_and_next_word_shown() -> None:
    backend = SimpleNamespace(
        add_to_vocabulary=AsyncMock(),
        word_for_learning=AsyncMock(return_value=APPLE),
    )
    context = _context(backend)
    context.application.bot_data[SESSION_STORE_KEY].set_stage(100, Stage.LEARNING, category="1")
    update = _update(data="known_3")

    asyncio.run(known_callback(update, context))

    backend.add_to_vocabulary.assert_awaited_once_with(42, 3)
    backend.word_for_learning.assert_awaited_once_with(42, "1")
    update.callback_query.answer.assert_awaited_once_with(text="✅ Добавлено в словарь")


def test_idle_text_falls_through_to_menu_hint() -> None:
    context = _context(SimpleNamespace())
    update = _update(text="hello")

    asyncio.run(stateful_text_router(update, context))

    assert "/help" in _replies(update)[0]
