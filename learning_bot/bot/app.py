from __future__ import annotations

import logging

from telegram import BotCommand, Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from learning_bot.bot.api_client import BackendClient
from learning_bot.bot.handlers.basic import (
    cancel_command,
    help_command,
    menu_callback,
    start_command,
)
from learning_bot.bot.handlers.generation import generate_command
from learning_bot.bot.handlers.learning import (
    known_callback,
    learn_callback,
    learn_menu,
    show_translation_callback,
)
from learning_bot.bot.handlers.practice import practise_callback, practise_menu
from learning_bot.bot.handlers.router import stateful_text_router
from learning_bot.bot.handlers.translation import (
    direction_callback,
    save_translation_callback,
    translate_command,
)
from learning_bot.bot.handlers.vocabulary import (
    add_word_command,
    delete_my_word_callback,
    my_words_command,
    vocabulary_command,
)
from learning_bot.bot.keyboards import (
    ADD_WORD,
    DELETE_MY_WORD_PATTERN,
    GENERATE_TEXT,
    KNOWN_PATTERN,
    LEARN_MENU,
    LEARN_PATTERN,
    NEXT_PATTERN,
    PRACTISE_MENU,
    PRACTISE_PATTERN,
    RETURN_MENU,
    SAVE_TRANSLATION,
    SHOW_MY_WORDS,
    SHOW_TRANSLATION_PATTERN,
    SHOW_VOCABULARY,
    TRANSLATE_DIRECTION_PATTERN,
    TRANSLATION_MENU,
    main_menu,
)
from learning_bot.bot.runtime_keys import BACKEND_CLIENT_KEY, SESSION_STORE_KEY
from learning_bot.bot.sessions import SessionStore
from learning_bot.config import BotSettings

logger = logging.getLogger(__name__)

BOT_COMMANDS: tuple[tuple[str, str], ...] = (
    ("start", "Начать работу с ботом"),
    ("learn", "Изучать новые слова"),
    ("categories", "Выбрать категорию"),
    ("vocabulary", "Изученные слова"),
    ("addword", "Добавить своё слово"),
    ("mywords", "Слова из \"My Words\""),
    ("practise", "Практика перевода"),
    ("translate", "Переводчик"),
    ("generate", "Текст из изученных слов"),
    ("cancel", "Отменить текущее действие"),
    ("help", "Список команд"),
)


def create_application(
    settings: BotSettings,
    *,
    backend_client: BackendClient | None = None,
) -> Application:
    client = backend_client or BackendClient(
        settings.backend_api_url, timeout_seconds=settings.http_timeout_seconds
    )

    app = (
        Application.builder()
        .token(settings.telegram_bot_token)
        .post_init(_post_init)
        .post_shutdown(_post_shutdown)
        .build()
    )
    app.bot_data[BACKEND_CLIENT_KEY] = client
    app.bot_data[SESSION_STORE_KEY] = SessionStore()

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("cancel", cancel_command))
    app.add_handler(CommandHandler(["learn", "categories"], learn_menu))
    app.add_handler(CommandHandler("vocabulary", vocabulary_command))
    app.add_handler(CommandHandler("addword", add_word_command))
    app.add_handler(CommandHandler("mywords", my_words_command))
    app.add_handler(CommandHandler("practise", practise_menu))
    app.add_handler(CommandHandler("translate", translate_command))
    app.add_handler(CommandHandler("generate", generate_command))

    app.add_handler(CallbackQueryHandler(menu_callback, pattern=rf"^{RETURN_MENU}$"))
    app.add_handler(CallbackQueryHandler(learn_menu, pattern=rf"^{LEARN_MENU}$"))
    app.add_handler(CallbackQueryHandler(learn_callback, pattern=LEARN_PATTERN))
    app.add_handler(CallbackQueryHandler(learn_callback, pattern=NEXT_PATTERN))
    app.add_handler(CallbackQueryHandler(known_callback, pattern=KNOWN_PATTERN))
    app.add_handler(
        CallbackQueryHandler(show_translation_callback, pattern=SHOW_TRANSLATION_PATTERN)
    )
    app.add_handler(CallbackQueryHandler(add_word_command, pattern=rf"^{ADD_WORD}$"))
    app.add_handler(CallbackQueryHandler(vocabulary_command, pattern=rf"^{SHOW_VOCABULARY}$"))
    app.add_handler(CallbackQueryHandler(my_words_command, pattern=rf"^{SHOW_MY_WORDS}$"))
    app.add_handler(CallbackQueryHandler(delete_my_word_callback, pattern=DELETE_MY_WORD_PATTERN))
    app.add_handler(CallbackQueryHandler(generate_command, pattern=rf"^{GENERATE_TEXT}$"))
    app.add_handler(CallbackQueryHandler(practise_menu, pattern=rf"^{PRACTISE_MENU}$"))
    app.add_handler(CallbackQueryHandler(practise_callback, pattern=PRACTISE_PATTERN))
    app.add_handler(CallbackQueryHandler(translate_command, pattern=rf"^{TRANSLATION_MENU}$"))
    app.add_handler(CallbackQueryHandler(direction_callback, pattern=TRANSLATE_DIRECTION_PATTERN))
    app.add_handler(
        CallbackQueryHandler(save_translation_callback, pattern=rf"^{SAVE_TRANSLATION}$")
    )

    app.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND, stateful_text_router),
        group=100,
    )

    app.add_error_handler(_error_handler)
    return app


async def _post_init(app: Application) -> None:
    await app.bot.set_my_commands([BotCommand(name, text) for name, text in BOT_COMMANDS])
    logger.info("Telegram command menu registered.")


async def _post_shutdown(app: Application) -> None:
    client: BackendClient = app.bot_data[BACKEND_CLIENT_KEY]
    await client.close()
    logger.info("Backend client closed.")


async def _error_handler(
    update: object, context: ContextTypes.DEFAULT_TYPE
) -> None:  # pragma: no cover - framework callback
    logger.exception("Unhandled telegram error", exc_info=context.error)
    if isinstance(update, Update) and update.effective_message is not None:
        await update.effective_message.reply_text(
            "Произошла ошибка. Попробуйте позже.", reply_markup=main_menu()
        )
