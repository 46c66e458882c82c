from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from learning_bot.bot.handlers.basic import unknown_text
from learning_bot.bot.handlers.practice import handle_practice_text
from learning_bot.bot.handlers.translation import handle_translation_text
from learning_bot.bot.handlers.vocabulary import handle_add_word_text

logger = logging.getLogger(__name__)


async def stateful_text_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    for handler in (
        handle_add_word_text,
        handle_practice_text,
        handle_translation_text,
    ):
        try:
            handled = await handler(update, context)
        except Exception:
            logger.exception("Stateful text handler failed")
            raise
        if handled:
            return
    await unknown_text(update, context)
