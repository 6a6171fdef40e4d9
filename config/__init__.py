"""
Модуль конфигурации бота.

Содержит:
- settings.py: все константы, токены, настройки
- features.py: feature flags (features.yaml + env)
- transitions.yaml: таблица переходов State Machine
"""

from .settings import (
    # Токены и адреса
    BOT_TOKEN,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    OPENAI_API_URL,
    LANGUAGETOOL_URL,
    LANGUAGETOOL_LANGUAGE,
    DATABASE_URL,
    DEBUG,
    validate_env,

    # Таймауты
    REQUEST_TIMEOUT,
    TURN_TIMEOUT,
    HEALTH_PORT,

    # Логирование
    get_logger,

    # Временная зона
    BOT_TZ,

    # Пути
    BASE_DIR,
    CONFIG_DIR,
    TRANSITIONS_PATH,
    TEMPLATES_PATH,

    # Состояния и типы
    SessionState,
    ExerciseType,
    EnglishLevel,
    ActivityKind,
    DEFAULT_LEVEL,
    DEFAULT_EXERCISE_TYPE,

    # Прогресс
    ACHIEVEMENT_STREAKS,
    LEVEL_MIN_EXERCISES,
    LEVEL_READY_THRESHOLD,
)

__all__ = [
    'BOT_TOKEN',
    'OPENAI_API_KEY',
    'OPENAI_MODEL',
    'OPENAI_API_URL',
    'LANGUAGETOOL_URL',
    'LANGUAGETOOL_LANGUAGE',
    'DATABASE_URL',
    'DEBUG',
    'validate_env',
    'REQUEST_TIMEOUT',
    'TURN_TIMEOUT',
    'HEALTH_PORT',
    'get_logger',
    'BOT_TZ',
    'BASE_DIR',
    'CONFIG_DIR',
    'TRANSITIONS_PATH',
    'TEMPLATES_PATH',
    'SessionState',
    'ExerciseType',
    'EnglishLevel',
    'ActivityKind',
    'DEFAULT_LEVEL',
    'DEFAULT_EXERCISE_TYPE',
    'ACHIEVEMENT_STREAKS',
    'LEVEL_MIN_EXERCISES',
    'LEVEL_READY_THRESHOLD',
]
