"""
Записи БД в виде dataclass-объектов.

Запросы из db/queries/ возвращают эти объекты вместо asyncpg.Record.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Optional

from config import SessionState, DEFAULT_LEVEL


@dataclass
class User:
    id: int
    telegram_id: int
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    language_code: str = ""
    english_level: str = DEFAULT_LEVEL
    created_at: Optional[datetime] = None


@dataclass
class Session:
    """Сессия пользователя: одна на пользователя, никогда не удаляется."""
    user_id: int
    state: str = SessionState.IDLE
    context_data: dict = field(default_factory=dict)
    conversation_id: Optional[int] = None
    last_activity: Optional[datetime] = None
    id: Optional[int] = None


@dataclass
class Exercise:
    """Упражнение. После сохранения не меняется."""
    type: str
    level: str
    instruction: str = ""
    content: str = ""
    answer: str = ""
    options: list[str] = field(default_factory=list)
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_gradable(self) -> bool:
        """Есть ли эталонный ответ для автоматической проверки."""
        return bool(self.answer.strip())


@dataclass
class UserExercise:
    user_id: int
    exercise_id: int
    user_answer: str
    is_correct: bool
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class Conversation:
    id: int
    user_id: int
    topic: str = "general"
    level: str = DEFAULT_LEVEL
    created_at: Optional[datetime] = None


@dataclass
class ConversationMessage:
    conversation_id: int
    role: str           # 'user' или 'assistant'
    content: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class Progress:
    user_id: int
    total_exercises: int = 0
    correct_exercises: int = 0
    total_conversations: int = 0
    total_messages: int = 0
    grammar_checks: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: Optional[date] = None

    @property
    def success_rate(self) -> float:
        """Процент правильных ответов (0-100)."""
        if self.total_exercises <= 0:
            return 0.0
        return self.correct_exercises / self.total_exercises * 100


@dataclass
class Achievement:
    user_id: int
    achievement_type: str
    title: str
    description: str = ""
    unlocked_at: Optional[datetime] = None
