"""
Модели базы данных (SQL схемы).

Содержит CREATE TABLE и миграции.
"""

import asyncpg
from config import get_logger

logger = get_logger(__name__)


async def _apply_migrations(conn, migrations: list[str]) -> None:
    for migration in migrations:
        try:
            await conn.execute(migration)
        except asyncpg.PostgresError as e:
            # Игнорируем ошибки "колонка уже существует"
            if 'already exists' not in str(e).lower():
                logger.warning(f"Миграция пропущена: {e}")


async def create_tables(pool: asyncpg.Pool):
    """Создание всех таблиц и применение миграций"""
    async with pool.acquire() as conn:
        # ═══════════════════════════════════════════════════════════
        # ПОЛЬЗОВАТЕЛИ
        # ═══════════════════════════════════════════════════════════
        await conn.execute('''
            CREATE TABLE IF NOT EXISTS users (
                id BIGSERIAL PRIMARY KEY,
                telegram_id BIGINT UNIQUE NOT NULL,

                -- Профиль Telegram
                username TEXT DEFAULT '',
                first_name TEXT DEFAULT '',
                last_name TEXT DEFAULT '',
                language_code TEXT DEFAULT '',

                -- Уровень английского (A1..C2)
                english_level TEXT DEFAULT 'A1',

                created_at TIMESTAMP DEFAULT NOW(),
                updated_at TIMESTAMP DEFAULT NOW()
            )
        ''')

        # ═══════════════════════════════════════════════════════════
        # СЕССИИ (State Machine, одна на пользователя)
        # ═══════════════════════════════════════════════════════════
        await conn.execute('''
            CREATE TABLE IF NOT EXISTS user_sessions (
                id BIGSERIAL PRIMARY KEY,
                user_id BIGINT UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,

                state TEXT DEFAULT 'idle',
                context_data JSONB DEFAULT '{}',
                conversation_id BIGINT DEFAULT NULL,

                last_activity TIMESTAMP DEFAULT NOW(),
                created_at TIMESTAMP DEFAULT NOW(),
                updated_at TIMESTAMP DEFAULT NOW()
            )
        ''')

        # ═══════════════════════════════════════════════════════════
        # УПРАЖНЕНИЯ И ОТВЕТЫ
        # ═══════════════════════════════════════════════════════════
        await conn.execute('''
            CREATE TABLE IF NOT EXISTS exercises (
                id BIGSERIAL PRIMARY KEY,
                type TEXT NOT NULL,
                level TEXT NOT NULL,
                instruction TEXT DEFAULT '',
                content TEXT NOT NULL,
                answer TEXT DEFAULT '',
                options TEXT DEFAULT '[]',
                created_at TIMESTAMP DEFAULT NOW()
            )
        ''')

        await _apply_migrations(conn, [
            'ALTER TABLE exercises ADD COLUMN IF NOT EXISTS instruction TEXT DEFAULT \'\'',
            'ALTER TABLE exercises ADD COLUMN IF NOT EXISTS options TEXT DEFAULT \'[]\'',
        ])

        await conn.execute('''
            CREATE TABLE IF NOT EXISTS user_exercises (
                id BIGSERIAL PRIMARY KEY,
                user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                exercise_id BIGINT NOT NULL REFERENCES exercises(id) ON DELETE CASCADE,
                user_answer TEXT,
                is_correct BOOLEAN NOT NULL,
                created_at TIMESTAMP DEFAULT NOW()
            )
        ''')

        # ═══════════════════════════════════════════════════════════
        # ДИАЛОГИ
        # ═══════════════════════════════════════════════════════════
        await conn.execute('''
            CREATE TABLE IF NOT EXISTS conversations (
                id BIGSERIAL PRIMARY KEY,
                user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                topic TEXT DEFAULT 'general',
                level TEXT DEFAULT 'A1',
                created_at TIMESTAMP DEFAULT NOW(),
                updated_at TIMESTAMP DEFAULT NOW()
            )
        ''')

        await conn.execute('''
            CREATE TABLE IF NOT EXISTS conversation_messages (
                id BIGSERIAL PRIMARY KEY,
                conversation_id BIGINT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT NOW()
            )
        ''')

        # ═══════════════════════════════════════════════════════════
        # ПРОГРЕСС И ДОСТИЖЕНИЯ
        # ═══════════════════════════════════════════════════════════
        await conn.execute('''
            CREATE TABLE IF NOT EXISTS user_progress (
                id BIGSERIAL PRIMARY KEY,
                user_id BIGINT UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,

                total_exercises INTEGER DEFAULT 0,
                correct_exercises INTEGER DEFAULT 0,
                total_conversations INTEGER DEFAULT 0,
                total_messages INTEGER DEFAULT 0,
                grammar_checks INTEGER DEFAULT 0,

                -- Систематичность
                current_streak INTEGER DEFAULT 0,
                longest_streak INTEGER DEFAULT 0,
                last_activity_date DATE DEFAULT NULL,

                created_at TIMESTAMP DEFAULT NOW(),
                updated_at TIMESTAMP DEFAULT NOW()
            )
        ''')

        await _apply_migrations(conn, [
            'ALTER TABLE user_progress ADD COLUMN IF NOT EXISTS grammar_checks INTEGER DEFAULT 0',
        ])

        await conn.execute('''
            CREATE TABLE IF NOT EXISTS user_achievements (
                id BIGSERIAL PRIMARY KEY,
                user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                achievement_type TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT DEFAULT '',
                unlocked_at TIMESTAMP DEFAULT NOW(),

                UNIQUE(user_id, achievement_type)
            )
        ''')

        # Индексы
        await conn.execute('CREATE INDEX IF NOT EXISTS idx_user_exercises_user_id ON user_exercises(user_id)')
        await conn.execute('CREATE INDEX IF NOT EXISTS idx_conversations_user_id ON conversations(user_id)')
        await conn.execute('''
            CREATE INDEX IF NOT EXISTS idx_conversation_messages_conversation_id
            ON conversation_messages(conversation_id)
        ''')

    logger.info("✅ Все таблицы созданы/обновлены")
