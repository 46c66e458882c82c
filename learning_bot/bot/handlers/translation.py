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
    TRANSLATE_EN_RU,
    back_to_menu,
    main_menu,
    translation_menu,
    translation_result,
)
from learning_bot.bot.sessions import Stage
from learning_bot.domain.errors import InvalidInputError, LearningBotError, NotFoundError

logger = logging.getLogger(__name__)

_SOURCE_LABELS = {"database": "📚 из словаря", "yandex": "🌐 Yandex Translate"}


async def translate_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    session = chat_session(update, context)
    if session is not None:
        session.reset()
    await reply(update, "🔤 Выберите направление перевода:", translation_menu())


async def direction_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    session = chat_session(update, context)
    if session is None:
        return
    session.reset()
    if callback_data(update) == TRANSLATE_EN_RU:
        session.stage = Stage.TRANSLATING_EN_RU
        prompt = "🇬🇧 → 🇷🇺 Введите слово на английском:"
    else:
        session.stage = Stage.TRANSLATING_RU_EN
        prompt = "🇷🇺 → 🇬🇧 Введите слово на русском:"
    await reply(update, prompt, back_to_menu())


async def handle_translation_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    session = chat_session(update, context)
    message = update.effective_message
    if session is None or message is None:
        return False
    if session.stage not in (Stage.TRANSLATING_EN_RU, Stage.TRANSLATING_RU_EN):
        return False

    text = (message.text or "").strip()
    target = "ru" if session.stage is Stage.TRANSLATING_EN_RU else "en"
    try:
        result = await backend(context).translate(text, target)
    except InvalidInputError:
        await reply(update, "Введите непустой текст для перевода.", back_to_menu())
        return True
    except LearningBotError:
        logger.exception("Translation failed for %r", text)
        await reply_error(update, "❌ Не удалось перевести слово. Попробуйте позже.")
        return True

    if target == "ru":
        session.last_translation = (result.original_text, result.translated_text)
    else:
        session.last_translation = (result.translated_text, result.original_text)
    source = _SOURCE_LABELS.get(result.source, result.source)
    await reply(
        update,
        f"{result.original_text} → {result.translated_text}\nИсточник: {source}\n\n"
        "Введите следующее слово или сохраните перевод.",
        translation_result(),
    )
    return True


async def save_translation_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    session = chat_session(update, context)
    if user is None or session is None or session.last_translation is None:
        await answer_callback(update, text="Нет перевода для сохранения")
        return
    english, russian = session.last_translation
    try:
        await backend(context).save_translation(user.id, english, russian)
    except NotFoundError:
        await answer_callback(update)
        await reply_error(update, NOT_REGISTERED_TEXT)
        return
    except LearningBotError:
        logger.exception("Failed to save translation for user %s", user.id)
        await answer_callback(update)
        await reply_error(update)
        return
    session.last_translation = None
    await answer_callback(update, text="💾 Сохранено")
    await reply(update, f"✅ «{english} - {russian}» сохранено в \"My Words\".", main_menu())
