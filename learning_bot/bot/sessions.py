from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Stage(str, Enum):
    IDLE = "idle"
    LEARNING = "learning"
    PRACTISING = "practising"
    ADDING_WORD_TEXT = "adding_word_text"
    ADDING_WORD_TRANSLATION = "adding_word_translation"
    TRANSLATING_EN_RU = "translating_en_ru"
    TRANSLATING_RU_EN = "translating_ru_en"


@dataclass(slots=True)
class ChatSession:
    stage: Stage = Stage.IDLE
    category: str | None = None
    pending_text: str | None = None
    expected_answer: str | None = None
    last_translation: tuple[str, str] | None = None

    def reset(self) -> None:
        self.stage = Stage.IDLE
        self.category = None
        self.pending_text = None
        self.expected_answer = None
        self.last_translation = None


class SessionStore:
    """Per-chat conversation state. Lives in ``bot_data`` for the lifetime of the process."""

    def __init__(self) -> None:
        self._sessions: dict[int, ChatSession] = {}

    def get(self, chat_id: int) -> ChatSession:
        session = self._sessions.get(chat_id)
        if session is None:
            session = ChatSession()
            self._sessions[chat_id] = session
        return session

    def reset(self, chat_id: int) -> ChatSession:
        session = self.get(chat_id)
        session.reset()
        return session

    def set_stage(self, chat_id: int, stage: Stage, *, category: str | None = None) -> ChatSession:
        session = self.get(chat_id)
        session.stage = stage
        if category is not None:
            session.category = category
        return session

    def __len__(self) -> int:
        return len(self._sessions)
