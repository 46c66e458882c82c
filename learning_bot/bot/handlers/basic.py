from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from learning_bot.bot.handlers.common import (
    answer_callback,
    backend,
    reply,
    sessions,
)
from learning_bot.bot.keyboards import main_menu
from learning_bot.domain.errors import LearningBotError

logger = logging.getLogger(__name__)

MENU_TEXT = "📋 Главное меню\n\nВыберите действие:"

HELP_TEXT = (
    "📚 Команды бота:\n\n"
    "👋 /start - Начать работу с ботом\n"
    "📚 /learn - Начать изучение слов\n"
    "🗂 /categories - Выбрать категорию\n"
    "📝 /addword - Добавить своё слово\n"
    "📖 /vocabulary - Посмотреть изученные слова\n"
    "📝 /mywords - Слова из категории \"My Words\"\n"
    "🎯 /practise - Практика перевода слов\n"
    "✍️ /translate - Перевод слова\n"
    "🎨 /generate - Сгенерировать текст из изученных слов\n"
    "🚫 /cancel - Отменить текущее действие\n"
    "❓ /help - Показать эту справку\n\n"
    "Как учить слова:\n"
    "1. Выберите категорию через /learn\n"
    "2. Нажмите «Знаю это слово», чтобы добавить его в словарь\n"
    "3. Закрепляйте слова в /practise и /generate"
)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    chat = update.effective_chat
    if user is None or chat is None:
        return
    sessions(context).reset(chat.id)
    try:
        created = await backend(context).ensure_user(user.id)
    except LearningBotError:
        logger.exception("Failed to register user %s", user.id)
        await reply(update, "❌ Произошла ошибка при регистрации. Пожалуйста, попробуйте позже.")
        return
    greeting = (
        "👋 Добро пожаловать! Вы успешно зарегистрированы."
        if created
        else "👋 С возвращением!"
    )
    await reply(update, f"{greeting}\n\n{MENU_TEXT}", main_menu())


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await reply(update, HELP_TEXT, main_menu())


async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat = update.effective_chat
    if chat is not None:
        sessions(context).reset(chat.id)
    await reply(update, "Текущее действие отменено.", main_menu())


async def menu_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update)
    chat = update.effective_chat
    if chat is not None:
        sessions(context).reset(chat.id)
    await reply(update, MENU_TEXT, main_menu())


async def unknown_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await reply(update, "Не понимаю 🤔 Выберите действие в меню или наберите /help.", main_menu())

