from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from learning_bot.bot.handlers.common import (
    NOT_REGISTERED_TEXT,
    answer_callback,
    backend,
    reply,
    reply_error,
)
from learning_bot.bot.keyboards import generated_text
from learning_bot.domain.errors import (
    InvalidInputError,
    LearningBotError,
    NotFoundError,
    QuotaExceededError,
)
from learning_bot.utils.formatting import format_story

logger = logging.getLogger(__name__)


async def generate_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    user = update.effective_user
    if user is None:
        return
    await reply(update, "🎨 Генерирую текст на основе ваших изученных слов...")
    try:
        story = await backend(context).generate_text(user.id)
    except InvalidInputError:
        await reply_error(
            update,
            "📚 В вашем словаре пока недостаточно слов. Изучите несколько слов через /learn.",
        )
        return
    except QuotaExceededError:
        await reply_error(update, "⏳ Лимит генерации на сегодня исчерпан. Попробуйте завтра.")
        return
    except NotFoundError:
        await reply_error(update, NOT_REGISTERED_TEXT)
        return
    except LearningBotError:
        logger.exception("Text generation failed for user %s", user.id)
        await reply_error(update, "❌ Не удалось сгенерировать текст. Попробуйте позже.")
        return
    await reply(update, format_story(story), generated_text())
