"""
Запросы для работы с пользователями (таблица users).
"""

from datetime import datetime, date
from typing import Optional

from config import get_logger, BOT_TZ, DEFAULT_LEVEL
from db.connection import get_pool
from db.entities import User

logger = get_logger(__name__)


def local_now() -> datetime:
    """Текущее время в часовом поясе бота"""
    return datetime.now(BOT_TZ)


def local_today() -> date:
    """Текущая дата в часовом поясе бота"""
    return local_now().date()


def _row_to_user(row) -> User:
    return User(
        id=row['id'],
        telegram_id=row['telegram_id'],
        username=row['username'] or '',
        first_name=row['first_name'] or '',
        last_name=row['last_name'] or '',
        language_code=row['language_code'] or '',
        english_level=row['english_level'] or DEFAULT_LEVEL,
        created_at=row['created_at'],
    )


async def get_user(telegram_id: int) -> Optional[User]:
    """Получить пользователя по Telegram ID (None, если его ещё нет)"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            'SELECT * FROM users WHERE telegram_id = $1', telegram_id
        )
        return _row_to_user(row) if row else None


async def create_user(telegram_id: int, username: str = '', first_name: str = '',
                      last_name: str = '', language_code: str = '') -> User:
    """
    Создать пользователя из профиля Telegram.

    При гонке двух первых сообщений возвращает уже существующую запись.
    """
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow('''
            INSERT INTO users (telegram_id, username, first_name, last_name, language_code, english_level)
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT (telegram_id) DO UPDATE SET updated_at = NOW()
            RETURNING *
        ''', telegram_id, username or '', first_name or '', last_name or '',
            language_code or '', DEFAULT_LEVEL)
    logger.info(f"👤 Новый пользователь: telegram_id={telegram_id}, id={row['id']}")
    return _row_to_user(row)


async def update_user_level(user_id: int, level: str):
    """Сменить уровень английского"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            'UPDATE users SET english_level = $1, updated_at = NOW() WHERE id = $2',
            level, user_id
        )
