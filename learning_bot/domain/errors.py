from __future__ import annotations


class LearningBotError(Exception):
    """Base class for expected failures of the vocabulary service."""


class NotFoundError(LearningBotError):
    """Raised when a user, word or category does not exist."""


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class WordNotFoundError(NotFoundError):
    def __init__(self, word_id: int) -> None:
        super().__init__(f"Word {word_id} not found")
        self.word_id = word_id


class CategoryNotFoundError(NotFoundError):
    def __init__(self, category: int | str) -> None:
        super().__init__(f"Category {category} not found")
        self.category = category


class ConflictError(LearningBotError):
    """Raised when the request clashes with the current state."""


class UserAlreadyExistsError(ConflictError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} already exists")
        self.user_id = user_id


class NoWordsAvailableError(ConflictError):
    """Raised when every candidate word has already been learned or viewed."""


class QuotaExceededError(ConflictError):
    """Raised when the daily AI request limit is used up."""


class InvalidInputError(LearningBotError):
    """Raised when required fields are missing or blank."""


class ExternalProviderError(LearningBotError):
    """Raised when GigaChat, Yandex or the backend answers with a failure."""

    def __init__(self, message: str, *, provider: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class TokenRefreshError(ExternalProviderError):
    """Raised when an access token cannot be obtained."""


class MalformedResponseError(ExternalProviderError):
    """Raised when a provider answer does not have the expected shape."""


class StoreError(LearningBotError):
    """Raised when the database does not return what a write promised."""
