"""
Запросы для счётчиков прогресса и систематичности (таблица user_progress).

Счётчики увеличиваются атомарно в SQL (x = x + n), а не через
чтение-изменение-запись: параллельные ходы не теряют инкременты.
"""

from datetime import date

from config import get_logger
from db.connection import get_pool
from db.entities import Progress

logger = get_logger(__name__)

# Колонки, которые можно увеличивать через increment_progress
COUNTERS = (
    'total_exercises',
    'correct_exercises',
    'total_conversations',
    'total_messages',
    'grammar_checks',
)


def _row_to_progress(row) -> Progress:
    return Progress(
        user_id=row['user_id'],
        total_exercises=row['total_exercises'] or 0,
        correct_exercises=row['correct_exercises'] or 0,
        total_conversations=row['total_conversations'] or 0,
        total_messages=row['total_messages'] or 0,
        grammar_checks=row['grammar_checks'] or 0,
        current_streak=row['current_streak'] or 0,
        longest_streak=row['longest_streak'] or 0,
        last_activity_date=row['last_activity_date'],
    )


async def get_progress(user_id: int) -> Progress:
    """Получить прогресс пользователя (строка создаётся при первом обращении)"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow('''
            INSERT INTO user_progress (user_id)
            VALUES ($1)
            ON CONFLICT (user_id) DO UPDATE SET user_id = EXCLUDED.user_id
            RETURNING *
        ''', user_id)
    return _row_to_progress(row)


async def increment_progress(user_id: int, **deltas: int):
    """
    Атомарно увеличить счётчики.

    Пример:
        await increment_progress(user_id, total_exercises=1, correct_exercises=1)
    """
    deltas = {k: v for k, v in deltas.items() if v}
    if not deltas:
        return

    unknown = set(deltas) - set(COUNTERS)
    if unknown:
        raise ValueError(f"Неизвестные счётчики: {', '.join(sorted(unknown))}")

    assignments = ', '.join(
        f'{column} = {column} + ${i}' for i, column in enumerate(deltas, start=2)
    )

    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            'INSERT INTO user_progress (user_id) VALUES ($1) ON CONFLICT (user_id) DO NOTHING',
            user_id
        )
        await conn.execute(
            f'UPDATE user_progress SET {assignments}, updated_at = NOW() WHERE user_id = $1',
            user_id, *deltas.values()
        )


async def update_streak(user_id: int, current_streak: int, longest_streak: int,
                        last_activity_date: date):
    """Записать серию и дату последней активности"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute('''
            UPDATE user_progress
            SET current_streak = $1,
                longest_streak = $2,
                last_activity_date = $3,
                updated_at = NOW()
            WHERE user_id = $4
        ''', current_streak, longest_streak, last_activity_date, user_id)
