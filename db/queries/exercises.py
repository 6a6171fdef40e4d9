"""
Запросы для работы с упражнениями и ответами на них.
"""

import json
from typing import Optional

from config import get_logger
from db.connection import get_pool
from db.entities import Exercise, UserExercise

logger = get_logger(__name__)


def _row_to_exercise(row) -> Exercise:
    options = row['options'] or '[]'
    try:
        options = json.loads(options) if isinstance(options, str) else list(options)
    except json.JSONDecodeError:
        options = []
    return Exercise(
        id=row['id'],
        type=row['type'],
        level=row['level'],
        instruction=row['instruction'] or '',
        content=row['content'],
        answer=row['answer'] or '',
        options=options,
        created_at=row['created_at'],
    )


async def save_exercise(exercise: Exercise) -> Exercise:
    """Сохранить упражнение, вернуть его с присвоенным id"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow('''
            INSERT INTO exercises (type, level, instruction, content, answer, options)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING *
        ''', exercise.type, exercise.level, exercise.instruction,
            exercise.content, exercise.answer, json.dumps(exercise.options))
    return _row_to_exercise(row)


async def get_exercise(exercise_id: int) -> Optional[Exercise]:
    """Получить упражнение по id"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow('SELECT * FROM exercises WHERE id = $1', exercise_id)
    return _row_to_exercise(row) if row else None


async def save_user_exercise(attempt: UserExercise) -> UserExercise:
    """Сохранить ответ пользователя на упражнение"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow('''
            INSERT INTO user_exercises (user_id, exercise_id, user_answer, is_correct)
            VALUES ($1, $2, $3, $4)
            RETURNING id, created_at
        ''', attempt.user_id, attempt.exercise_id, attempt.user_answer, attempt.is_correct)
    attempt.id = row['id']
    attempt.created_at = row['created_at']
    return attempt
