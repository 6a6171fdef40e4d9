"""
Запросы для диалогов в режиме /chat.
"""

from typing import List

from config import get_logger
from db.connection import get_pool
from db.entities import Conversation, ConversationMessage

logger = get_logger(__name__)


async def start_conversation(user_id: int, level: str, topic: str = 'general') -> Conversation:
    """Начать новый диалог"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow('''
            INSERT INTO conversations (user_id, topic, level)
            VALUES ($1, $2, $3)
            RETURNING *
        ''', user_id, topic, level)
    return Conversation(
        id=row['id'],
        user_id=row['user_id'],
        topic=row['topic'],
        level=row['level'],
        created_at=row['created_at'],
    )


async def add_message(conversation_id: int, role: str, content: str):
    """Добавить сообщение в диалог (role: 'user' или 'assistant')"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute('''
            INSERT INTO conversation_messages (conversation_id, role, content)
            VALUES ($1, $2, $3)
        ''', conversation_id, role, content)
        await conn.execute(
            'UPDATE conversations SET updated_at = NOW() WHERE id = $1',
            conversation_id
        )


async def get_messages(conversation_id: int, limit: int = 10) -> List[ConversationMessage]:
    """Последние сообщения диалога в хронологическом порядке"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch('''
            SELECT * FROM conversation_messages
            WHERE conversation_id = $1
            ORDER BY id DESC
            LIMIT $2
        ''', conversation_id, limit)

    return [
        ConversationMessage(
            id=row['id'],
            conversation_id=row['conversation_id'],
            role=row['role'],
            content=row['content'],
            created_at=row['created_at'],
        )
        for row in reversed(rows)
    ]
