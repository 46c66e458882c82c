from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from learning_bot.bot.handlers.common import (
    NOT_REGISTERED_TEXT,
    answer_callback,
    backend,
    callback_data,
    reply,
    reply_error,
    sessions,
)
from learning_bot.bot.keyboards import (
    KNOWN_PREFIX,
    LEARN_PREFIX,
    NEXT_PREFIX,
    SHOW_TRANSLATION_PREFIX,
    category_exhausted,
    learn_categories,
    learning_word,
    parse_suffix,
    translated_word,
)
from learning_bot.bot.sessions import Stage
from learning_bot.domain.errors import (
    LearningBotError,
    NoWordsAvailableError,
    NotFoundError,
)
from learning_bot.utils.formatting import format_word_card, format_word_with_translation

logger = logging.getLogger(__name__)


async def learn_menu(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    try:
        categories = await backend(context).categories()
    except LearningBotError:
        logger.exception("Failed to load categories")
        await reply_error(update, "К сожалению, не удалось загрузить категории. Попробуйте позже.")
        return
    if not categories:
        await reply_error(update, "Категории пока не добавлены.")
        return
    await reply(update, "📚 Выберите категорию для изучения:", learn_categories(categories))


async def learn_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    data = callback_data(update)
    category = parse_suffix(data, LEARN_PREFIX) or parse_suffix(data, NEXT_PREFIX) or "all"
    await send_learning_word(update, context, category)


async def send_learning_word(
    update: Update, context: ContextTypes.DEFAULT_TYPE, category: str
) -> None:
    user = update.effective_user
    chat = update.effective_chat
    if user is None or chat is None:
        return
    sessions(context).set_stage(chat.id, Stage.LEARNING, category=category)
    try:
        word = await backend(context).word_for_learning(user.id, category)
    except NoWordsAvailableError:
        await reply(
            update,
            "🎉 Вы просмотрели все слова в этой категории!\n"
            "Добавьте свои слова или выберите другую категорию.",
            category_exhausted(),
        )
        return
    except NotFoundError:
        await reply_error(update, NOT_REGISTERED_TEXT)
        return
    except LearningBotError:
        logger.exception("Failed to get a word for user %s", user.id)
        await reply_error(update, "Произошла ошибка при получении слова. Пожалуйста, попробуйте позже.")
        return
    await reply(update, format_word_card(word), learning_word(word.id, category))


async def known_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    chat = update.effective_chat
    word_id = parse_suffix(callback_data(update), KNOWN_PREFIX)
    if user is None or chat is None or word_id is None:
        await answer_callback(update)
        return
    try:
        await backend(context).add_to_vocabulary(user.id, int(word_id))
    except NotFoundError:
        await answer_callback(update)
        await reply_error(update, "❌ Не удалось добавить слово в словарь.")
        return
    except LearningBotError:
        logger.exception("Failed to add word %s for user %s", word_id, user.id)
        await answer_callback(update)
        await reply_error(update, "❌ Не удалось добавить слово в словарь. Попробуйте позже.")
        return
    await answer_callback(update, text="✅ Добавлено в словарь")
    await reply(update, "✅ Отлично! Слово добавлено в ваш словарь.")
    category = sessions(context).get(chat.id).category or "all"
    await send_learning_word(update, context, category)


async def show_translation_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    chat = update.effective_chat
    word_id = parse_suffix(callback_data(update), SHOW_TRANSLATION_PREFIX)
    if chat is None or word_id is None:
        return
    try:
        word = await backend(context).get_word(int(word_id))
    except NotFoundError:
        await reply_error(update, "❌ Извините, не удалось найти это слово. Попробуйте другое.")
        return
    except LearningBotError:
        logger.exception("Failed to load word %s", word_id)
        await reply_error(update, "Произошла ошибка при получении перевода. Пожалуйста, попробуйте позже.")
        return
    category = sessions(context).get(chat.id).category or "all"
    await reply(update, format_word_with_translation(word), translated_word(word.id, category))
