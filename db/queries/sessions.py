"""
Запросы для работы с сессиями State Machine (таблица user_sessions).

context_data хранится как JSONB; asyncpg без кодека отдаёт его строкой,
поэтому сериализуем вручную.
"""

import json

from config import get_logger, SessionState
from db.connection import get_pool
from db.entities import Session

logger = get_logger(__name__)


def _load_json(value) -> dict:
    if value is None:
        return {}
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            # Битый JSON отдаём как есть: стейт разберёт и сбросит сессию
            return {"_raw": value}
    return value


def _row_to_session(row) -> Session:
    return Session(
        id=row['id'],
        user_id=row['user_id'],
        state=row['state'] or SessionState.IDLE,
        context_data=_load_json(row['context_data']),
        conversation_id=row['conversation_id'],
        last_activity=row['last_activity'],
    )


async def get_or_create_session(user_id: int) -> Session:
    """Получить сессию пользователя; создать в idle, если её нет"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            'SELECT * FROM user_sessions WHERE user_id = $1', user_id
        )
        if row:
            return _row_to_session(row)

        row = await conn.fetchrow('''
            INSERT INTO user_sessions (user_id, state, context_data)
            VALUES ($1, $2, '{}')
            ON CONFLICT (user_id) DO UPDATE SET last_activity = NOW()
            RETURNING *
        ''', user_id, SessionState.IDLE)
        return _row_to_session(row)


async def update_session(session: Session):
    """Записать стейт, контекст и диалог сессии одним UPDATE"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute('''
            UPDATE user_sessions
            SET state = $1,
                context_data = $2,
                conversation_id = $3,
                last_activity = NOW(),
                updated_at = NOW()
            WHERE user_id = $4
        ''', session.state, json.dumps(session.context_data),
            session.conversation_id, session.user_id)
