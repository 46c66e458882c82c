from __future__ import annotations

import logging

from telegram import InlineKeyboardMarkup, Update
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from learning_bot.bot.api_client import BackendClient
from learning_bot.bot.keyboards import back_to_menu
from learning_bot.bot.runtime_keys import BACKEND_CLIENT_KEY, SESSION_STORE_KEY
from learning_bot.bot.sessions import ChatSession, SessionStore
from learning_bot.utils.formatting import split_message

logger = logging.getLogger(__name__)

GENERIC_ERROR_TEXT = "❌ Произошла ошибка. Пожалуйста, попробуйте позже."
NOT_REGISTERED_TEXT = "Сначала зарегистрируйтесь командой /start."


def backend(context: ContextTypes.DEFAULT_TYPE) -> BackendClient:
    return context.application.bot_data[BACKEND_CLIENT_KEY]


def sessions(context: ContextTypes.DEFAULT_TYPE) -> SessionStore:
    return context.application.bot_data[SESSION_STORE_KEY]


def chat_session(update: Update, context: ContextTypes.DEFAULT_TYPE) -> ChatSession | None:
    chat = update.effective_chat
    if chat is None:
        return None
    return sessions(context).get(chat.id)


async def answer_callback(update: Update, *, text: str | None = None) -> None:
    query = update.callback_query
    if query is None:
        return
    try:
        await query.answer(text=text)
    except BadRequest as exc:
        lowered = str(exc).lower()
        if "query is too old" in lowered or "query id is invalid" in lowered:
            logger.debug("Ignoring stale callback query answer error: %s", exc)
            return
        raise


def callback_data(update: Update) -> str:
    query = update.callback_query
    return (query.data or "") if query is not None else ""


async def reply(
    update: Update,
    text: str,
    reply_markup: InlineKeyboardMarkup | None = None,
) -> None:
    message = update.effective_message
    if message is None:
        return
    chunks = split_message(text)
    for index, chunk in enumerate(chunks):
        markup = reply_markup if index == len(chunks) - 1 else None
        await message.reply_text(chunk, reply_markup=markup)


async def reply_error(update: Update, text: str = GENERIC_ERROR_TEXT) -> None:
    await reply(update, text, back_to_menu())
