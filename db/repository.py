"""
Репозиторий: единая точка доступа к БД для стейтов и движков.

Стейты получают его в конструкторе (self.db) и не импортируют
db.queries напрямую. В тестах подменяется in-memory реализацией
с теми же методами.
"""

from datetime import date
from typing import List, Optional

from db import queries
from db.entities import (
    User, Session, Exercise, UserExercise,
    Conversation, ConversationMessage, Progress, Achievement,
)


class Database:
    """Обёртка над db.queries с методами по операциям хранилища"""

    # ─── Пользователи ───

    async def get_user(self, telegram_id: int) -> Optional[User]:
        return await queries.get_user(telegram_id)

    async def create_user(self, telegram_id: int, username: str = '', first_name: str = '',
                          last_name: str = '', language_code: str = '') -> User:
        return await queries.create_user(
            telegram_id, username, first_name, last_name, language_code
        )

    async def update_user_level(self, user_id: int, level: str):
        await queries.update_user_level(user_id, level)

    # ─── Сессии ───

    async def get_or_create_session(self, user_id: int) -> Session:
        return await queries.get_or_create_session(user_id)

    async def update_session(self, session: Session):
        await queries.update_session(session)

    # ─── Упражнения ───

    async def save_exercise(self, exercise: Exercise) -> Exercise:
        return await queries.save_exercise(exercise)

    async def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        return await queries.get_exercise(exercise_id)

    async def save_user_exercise(self, attempt: UserExercise) -> UserExercise:
        return await queries.save_user_exercise(attempt)

    # ─── Диалоги ───

    async def start_conversation(self, user_id: int, level: str) -> Conversation:
        return await queries.start_conversation(user_id, level)

    async def add_message(self, conversation_id: int, role: str, content: str):
        await queries.add_message(conversation_id, role, content)

    async def get_messages(self, conversation_id: int, limit: int = 10) -> List[ConversationMessage]:
        return await queries.get_messages(conversation_id, limit)

    # ─── Прогресс ───

    async def get_progress(self, user_id: int) -> Progress:
        return await queries.get_progress(user_id)

    async def increment_progress(self, user_id: int, **deltas: int):
        await queries.increment_progress(user_id, **deltas)

    async def update_streak(self, user_id: int, current_streak: int, longest_streak: int,
                            last_activity_date: date):
        await queries.update_streak(user_id, current_streak, longest_streak, last_activity_date)

    # ─── Достижения ───

    async def add_achievement(self, achievement: Achievement) -> bool:
        return await queries.add_achievement(achievement)

    async def get_achievements(self, user_id: int) -> List[Achievement]:
        return await queries.get_achievements(user_id)
