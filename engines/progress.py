"""
Трекер прогресса: счётчики, серии дней и достижения.

Вызывается стейтами после каждой учебной активности:

    tracker = ProgressTracker(db)
    unlocked = await tracker.record_activity(user.id, ActivityKind.EXERCISE, success=True)
    for achievement in unlocked:
        ...  # поздравить пользователя

Серия считается по календарным датам в часовом поясе бота (BOT_TZ).
"""

from datetime import date, timedelta
from typing import Callable, List, Optional, Tuple

from config import (
    get_logger,
    ActivityKind,
    ACHIEVEMENT_STREAKS,
    EnglishLevel,
    LEVEL_MIN_EXERCISES,
    LEVEL_READY_THRESHOLD,
)
from db.entities import Achievement, Progress
from db.queries.users import local_today

logger = get_logger(__name__)


def advance_streak(current: int, longest: int, last_date: Optional[date],
                   today: date) -> Tuple[int, int]:
    """
    Новая серия после активности в день today.

    Returns:
        (current_streak, longest_streak)
    """
    if last_date == today:
        return current, max(longest, current)
    if last_date == today - timedelta(days=1):
        current += 1
    else:
        current = 1
    return current, max(longest, current)


def streak_achievement(user_id: int, streak: int) -> Achievement:
    return Achievement(
        user_id=user_id,
        achievement_type=f"streak_{streak}_days",
        title=f"{streak}-day streak",
        description=f"You practised English {streak} days in a row!",
    )


def _counter_deltas(kind: str, success: Optional[bool]) -> dict:
    if kind == ActivityKind.MESSAGE:
        return {'total_messages': 1}
    if kind == ActivityKind.CONVERSATION:
        return {'total_conversations': 1}
    if kind == ActivityKind.EXERCISE:
        return {'total_exercises': 1, 'correct_exercises': 1 if success else 0}
    if kind == ActivityKind.GRAMMAR_CHECK:
        return {'grammar_checks': 1}
    raise ValueError(f"Unknown activity kind: {kind}")


class ProgressTracker:
    """
    Обновляет прогресс пользователя в БД.

    Args:
        db: репозиторий (Database или fake в тестах)
        clock: функция, возвращающая текущую дату
    """

    def __init__(self, db, clock: Callable[[], date] = local_today):
        self.db = db
        self.clock = clock

    async def record_activity(self, user_id: int, kind: str,
                              success: Optional[bool] = None) -> List[Achievement]:
        """
        Учитывает активность: счётчики + серия + достижения.

        Args:
            user_id: ID пользователя в БД
            kind: ActivityKind (message, conversation, exercise, grammar_check)
            success: для exercise — был ли ответ правильным

        Returns:
            Достижения, полученные этим вызовом
        """
        await self.db.increment_progress(user_id, **_counter_deltas(kind, success))
        return await self.touch(user_id)

    async def touch(self, user_id: int) -> List[Achievement]:
        """Обновляет только серию дней (и выдаёт достижения за неё)"""
        progress = await self.db.get_progress(user_id)
        today = self.clock()

        if progress.last_activity_date == today:
            return []

        current, longest = advance_streak(
            progress.current_streak,
            progress.longest_streak,
            progress.last_activity_date,
            today,
        )
        await self.db.update_streak(user_id, current, longest, today)
        logger.info(f"📅 Активный день для user_id={user_id}: streak={current}, longest={longest}")

        unlocked = []
        if current in ACHIEVEMENT_STREAKS:
            achievement = streak_achievement(user_id, current)
            if await self.db.add_achievement(achievement):
                logger.info(f"🏆 Достижение {achievement.achievement_type} для user_id={user_id}")
                unlocked.append(achievement)
        return unlocked


# =============================================================================
# ПРОГРЕСС ПО УРОВНЮ
# =============================================================================

def level_progress(progress: Progress, level: str) -> float:
    """
    Оценка прохождения уровня, 0-100.

    70% — количество упражнений относительно минимума для уровня,
    30% — доля правильных ответов.
    """
    min_exercises = LEVEL_MIN_EXERCISES.get(level, LEVEL_MIN_EXERCISES[EnglishLevel.C2])
    exercise_part = min(progress.total_exercises / min_exercises, 1.0) * 70
    rate_part = (progress.success_rate / 100) * 30
    return round(exercise_part + rate_part, 2)


def next_level(level: str) -> str:
    """Следующий уровень CEFR (C2 остаётся C2)"""
    if level not in EnglishLevel.ALL:
        return EnglishLevel.C2
    index = EnglishLevel.ALL.index(level)
    return EnglishLevel.ALL[min(index + 1, len(EnglishLevel.ALL) - 1)]


def is_ready_for_next_level(progress: Progress, level: str) -> bool:
    return level_progress(progress, level) >= LEVEL_READY_THRESHOLD
