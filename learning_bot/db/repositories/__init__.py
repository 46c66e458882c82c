"""Repository implementations."""

from learning_bot.db.repositories.categories import CategoriesRepository
from learning_bot.db.repositories.users import UsersRepository
from learning_bot.db.repositories.words import WordsRepository

__all__ = [
    "CategoriesRepository",
    "UsersRepository",
    "WordsRepository",
]
