"""
Запросы для достижений (таблица user_achievements).
"""

from typing import List

from config import get_logger
from db.connection import get_pool
from db.entities import Achievement

logger = get_logger(__name__)


async def add_achievement(achievement: Achievement) -> bool:
    """
    Выдать достижение.

    Returns:
        True, если достижение выдано сейчас; False, если оно уже было.
    """
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow('''
            INSERT INTO user_achievements (user_id, achievement_type, title, description)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (user_id, achievement_type) DO NOTHING
            RETURNING id
        ''', achievement.user_id, achievement.achievement_type,
            achievement.title, achievement.description)
    return row is not None


async def get_achievements(user_id: int) -> List[Achievement]:
    """Все достижения пользователя в порядке получения"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch('''
            SELECT * FROM user_achievements
            WHERE user_id = $1
            ORDER BY unlocked_at, id
        ''', user_id)
    return [
        Achievement(
            user_id=row['user_id'],
            achievement_type=row['achievement_type'],
            title=row['title'],
            description=row['description'] or '',
            unlocked_at=row['unlocked_at'],
        )
        for row in rows
    ]
