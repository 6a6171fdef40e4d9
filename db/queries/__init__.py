"""
Функции для работы с базой данных.

Модули:
- users.py: работа с таблицей users
- sessions.py: сессии State Machine (user_sessions)
- exercises.py: упражнения и ответы (exercises, user_exercises)
- conversations.py: диалоги (conversations, conversation_messages)
- progress.py: счётчики и систематичность (user_progress)
- achievements.py: достижения (user_achievements)
"""

from .users import (
    get_user,
    create_user,
    update_user_level,
    local_now,
    local_today,
)

from .sessions import (
    get_or_create_session,
    update_session,
)

from .exercises import (
    save_exercise,
    get_exercise,
    save_user_exercise,
)

from .conversations import (
    start_conversation,
    add_message,
    get_messages,
)

from .progress import (
    get_progress,
    increment_progress,
    update_streak,
)

from .achievements import (
    add_achievement,
    get_achievements,
)

__all__ = [
    # users
    'get_user',
    'create_user',
    'update_user_level',
    'local_now',
    'local_today',

    # sessions
    'get_or_create_session',
    'update_session',

    # exercises
    'save_exercise',
    'get_exercise',
    'save_user_exercise',

    # conversations
    'start_conversation',
    'add_message',
    'get_messages',

    # progress
    'get_progress',
    'increment_progress',
    'update_streak',

    # achievements
    'add_achievement',
    'get_achievements',
]
