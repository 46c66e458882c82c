from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from learning_bot.bot.handlers.common import (
    answer_callback,
    backend,
    callback_data,
    chat_session,
    reply,
    reply_error,
)
from learning_bot.bot.keyboards import (
    PRACTISE_PREFIX,
    back_to_menu,
    parse_suffix,
    practise_categories,
)
from learning_bot.bot.sessions import ChatSession, Stage
from learning_bot.domain.errors import LearningBotError, NotFoundError

logger = logging.getLogger(__name__)

MY_WORDS_SCOPE = "my"
ALL_SCOPE = "all"


def is_correct_answer(expected: str, answer: str) -> bool:
    return bool(answer.strip()) and answer.strip().casefold() == expected.strip().casefold()


async def practise_menu(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    try:
        categories = await backend(context).categories()
    except LearningBotError:
        logger.exception("Failed to load categories for practice")
        await reply_error(update, "Произошла ошибка при загрузке категорий для практики.")
        return
    await reply(update, "🎯 Выберите категорию для практики:", practise_categories(categories))


async def practise_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    scope = parse_suffix(callback_data(update), PRACTISE_PREFIX) or ALL_SCOPE
    await send_practice_word(update, context, scope)


async def send_practice_word(
    update: Update, context: ContextTypes.DEFAULT_TYPE, scope: str
) -> None:
    user = update.effective_user
    session = chat_session(update, context)
    if user is None or session is None:
        return
    client = backend(context)
    try:
        if scope == MY_WORDS_SCOPE:
            word = await client.random_custom_word(user.id)
        else:
            category_id = None if scope == ALL_SCOPE else int(scope)
            word = await client.random_word(user.id, category_id)
    except NotFoundError:
        session.reset()
        await reply_error(update, "Нет доступных слов для практики в выбранной категории.")
        return
    except LearningBotError:
        logger.exception("Failed to get a practice word for user %s", user.id)
        session.reset()
        await reply_error(update, "Произошла ошибка при получении слова для практики.")
        return

    session.stage = Stage.PRACTISING
    session.category = scope
    session.expected_answer = word.text
    await reply(
        update,
        f"Перевод: {word.translation}\nВведите слово на английском:",
        back_to_menu(),
    )


async def handle_practice_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    session = chat_session(update, context)
    message = update.effective_message
    if session is None or message is None or session.stage is not Stage.PRACTISING:
        return False
    await _check_answer(update, session, message.text or "")
    await send_practice_word(update, context, session.category or ALL_SCOPE)
    return True


async def _check_answer(update: Update, session: ChatSession, answer: str) -> None:
    expected = session.expected_answer or ""
    if is_correct_answer(expected, answer):
        await reply(update, "✅ Правильно!")
    else:
        await reply(update, f"❌ Неправильно. Правильный ответ: {expected}")
