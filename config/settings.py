"""
Настройки бота: токены, адреса API, константы предметной области.

Все значения читаются из переменных окружения один раз при импорте.
"""

import logging
import os
from datetime import timedelta, timezone
from pathlib import Path

# ============= ТОКЕНЫ И АДРЕСА =============

BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
OPENAI_API_URL = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")
LANGUAGETOOL_URL = os.getenv("LANGUAGETOOL_URL", "https://api.languagetool.org/v2/check")
LANGUAGETOOL_LANGUAGE = os.getenv("LANGUAGETOOL_LANGUAGE", "en-US")
DATABASE_URL = os.getenv("DATABASE_URL")

DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes", "on")

# Таймауты (секунды)
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))
TURN_TIMEOUT = int(os.getenv("TURN_TIMEOUT", "45"))

# Порт health-check сервера (0 = выключен)
HEALTH_PORT = int(os.getenv("HEALTH_PORT", "8080"))

# Граница календарного дня для серий
BOT_TZ = timezone(timedelta(hours=int(os.getenv("BOT_UTC_OFFSET", "0"))))

# ============= ПУТИ =============

BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = BASE_DIR / "config"
TRANSITIONS_PATH = CONFIG_DIR / "transitions.yaml"
TEMPLATES_PATH = BASE_DIR / "engines" / "exercises" / "templates.yaml"


def validate_env() -> None:
    """Проверяет, что заданы обязательные переменные окружения"""
    required = {
        "TELEGRAM_BOT_TOKEN": BOT_TOKEN,
        "OPENAI_API_KEY": OPENAI_API_KEY,
        "DATABASE_URL": DATABASE_URL,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise ValueError(f"Не установлены переменные окружения: {', '.join(missing)}")


# ============= ЛОГИРОВАНИЕ =============

_logging_configured = False


def get_logger(name: str) -> logging.Logger:
    """Возвращает логгер, при первом вызове настраивает формат вывода"""
    global _logging_configured
    if not _logging_configured:
        logging.basicConfig(
            level=logging.DEBUG if DEBUG else logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        _logging_configured = True
    return logging.getLogger(name)


# ============= СОСТОЯНИЯ И ТИПЫ =============

class SessionState:
    """Состояния сессии пользователя"""
    IDLE = "idle"
    CHAT = "chat"
    GRAMMAR_CHECK = "grammar_check"
    EXERCISE = "exercise"                # транзитное, пока генерируется упражнение
    EXERCISE_REPLY = "exercise_reply"

    ALL = (IDLE, CHAT, GRAMMAR_CHECK, EXERCISE, EXERCISE_REPLY)


class ExerciseType:
    """Типы упражнений"""
    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"
    TRANSLATION = "translation"
    LISTENING = "listening"
    SPEAKING = "speaking"

    ALL = (GRAMMAR, VOCABULARY, TRANSLATION, LISTENING, SPEAKING)


class EnglishLevel:
    """Уровни владения английским (CEFR)"""
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    ALL = (A1, A2, B1, B2, C1, C2)


class ActivityKind:
    """Виды активности для трекера прогресса"""
    MESSAGE = "message"
    CONVERSATION = "conversation"
    EXERCISE = "exercise"
    GRAMMAR_CHECK = "grammar_check"

    ALL = (MESSAGE, CONVERSATION, EXERCISE, GRAMMAR_CHECK)


DEFAULT_LEVEL = EnglishLevel.A1
DEFAULT_EXERCISE_TYPE = ExerciseType.GRAMMAR

# ============= ПРОГРЕСС =============

# Серии, за которые выдаются достижения
ACHIEVEMENT_STREAKS = (7, 30, 100)

# Минимум упражнений для перехода на следующий уровень
LEVEL_MIN_EXERCISES = {
    "A1": 50,
    "A2": 100,
    "B1": 150,
    "B2": 200,
    "C1": 250,
    "C2": 300,
}

# Порог готовности к следующему уровню (%)
LEVEL_READY_THRESHOLD = 85
