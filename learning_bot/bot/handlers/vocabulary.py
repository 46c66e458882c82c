from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from learning_bot.bot.handlers.common import (
    NOT_REGISTERED_TEXT,
    answer_callback,
    backend,
    callback_data,
    chat_session,
    reply,
    reply_error,
)
from learning_bot.bot.keyboards import (
    DELETE_MY_WORD_PREFIX,
    back_to_menu,
    main_menu,
    my_words,
    parse_suffix,
)
from learning_bot.bot.sessions import Stage
from learning_bot.domain.errors import InvalidInputError, LearningBotError, NotFoundError
from learning_bot.utils.formatting import format_word_list

logger = logging.getLogger(__name__)


async def vocabulary_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    user = update.effective_user
    if user is None:
        return
    try:
        words = await backend(context).learned_words(user.id)
    except NotFoundError:
        await reply_error(update, NOT_REGISTERED_TEXT)
        return
    except LearningBotError:
        logger.exception("Failed to load vocabulary for user %s", user.id)
        await reply_error(update)
        return
    if not words:
        await reply(
            update,
            "📖 Ваш словарь пока пуст. Изучайте слова через /learn.",
            back_to_menu(),
        )
        return
    await reply(update, format_word_list(f"📖 Изученные слова ({len(words)}):", words), back_to_menu())


async def add_word_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    session = chat_session(update, context)
    if session is None:
        return
    session.reset()
    session.stage = Stage.ADDING_WORD_TEXT
    await reply(update, "✏️ Введите слово на английском:", back_to_menu())


async def my_words_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    await _render_my_words(update, context)


async def _render_my_words(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    if user is None:
        return
    try:
        words = await backend(context).custom_words(user.id)
    except NotFoundError:
        await reply_error(update, NOT_REGISTERED_TEXT)
        return
    except LearningBotError:
        logger.exception("Failed to load custom words for user %s", user.id)
        await reply_error(update)
        return
    if not words:
        await reply(
            update,
            "📝 В категории \"My Words\" пока нет слов. Добавьте их командой /addword.",
            my_words(()),
        )
        return
    text = format_word_list("📝 Ваши слова:", words) + "\n\nНажмите на слово, чтобы удалить его."
    await reply(update, text, my_words(words))


async def delete_my_word_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    word_id = parse_suffix(callback_data(update), DELETE_MY_WORD_PREFIX)
    if user is None or word_id is None:
        await answer_callback(update)
        return
    try:
        await backend(context).delete_custom_word(user.id, int(word_id))
    except NotFoundError:
        await answer_callback(update)
        await reply_error(update, "❌ Слово не найдено или принадлежит другому пользователю.")
        return
    except LearningBotError:
        logger.exception("Failed to delete word %s for user %s", word_id, user.id)
        await answer_callback(update)
        await reply_error(update)
        return
    await answer_callback(update, text="🗑 Удалено")
    await _render_my_words(update, context)


async def handle_add_word_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    session = chat_session(update, context)
    message = update.effective_message
    user = update.effective_user
    if session is None or message is None or user is None:
        return False
    if session.stage not in (Stage.ADDING_WORD_TEXT, Stage.ADDING_WORD_TRANSLATION):
        return False

    text = (message.text or "").strip()
    if not text:
        await reply(update, "Пустое значение. Попробуйте ещё раз.", back_to_menu())
        return True

    if session.stage is Stage.ADDING_WORD_TEXT:
        session.pending_text = text
        session.stage = Stage.ADDING_WORD_TRANSLATION
        await reply(update, f"Слово: {text}\n✏️ Теперь введите перевод на русском:", back_to_menu())
        return True

    english = session.pending_text or ""
    session.reset()
    try:
        word = await backend(context).add_custom_word(user.id, english, text)
    except InvalidInputError:
        await reply_error(update, "❌ Слово и перевод не должны быть пустыми.")
        return True
    except NotFoundError:
        await reply_error(update, NOT_REGISTERED_TEXT)
        return True
    except LearningBotError:
        logger.exception("Failed to add custom word for user %s", user.id)
        await reply_error(update)
        return True
    await reply(
        update,
        f"✅ Слово «{word.text} - {word.translation}» добавлено в \"My Words\".",
        main_menu(),
    )
    return True
