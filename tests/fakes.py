"""
Тестовые заглушки: Telegram bot, репозиторий в памяти, LLM и LanguageTool.

Методы повторяют сигнатуры db.repository.Database, clients.gpt.GPTClient
и clients.languagetool.LanguageToolClient, поэтому стейты и машина
работают с ними без изменений.
"""

import asyncio
import copy
import random
from dataclasses import replace
from types import SimpleNamespace

from aiogram.exceptions import TelegramBadRequest

from db.entities import (
    User, Session, Exercise, UserExercise,
    Conversation, ConversationMessage, Progress, Achievement,
)
from db.queries.progress import COUNTERS

TELEGRAM_ID = 1001

# Один кандидат на корзину: упражнение предсказуемо
TEST_TEMPLATES = {
    "grammar": {
        "lower_levels": ["A1", "A2", "B1"],
        "lower": {
            "instruction": "Choose the correct form of the verb.",
            "multiple_choice": True,
            "candidates": [
                {"sentence": "I (go/goes) to school every day.", "answer": "go"},
            ],
        },
        "upper": {
            "instruction": "Put the verb in brackets into the correct form.",
            "multiple_choice": False,
            "candidates": [
                {"sentence": "If I (have) more time, I would travel.", "answer": "had"},
            ],
        },
    },
}


class FakeBot:
    """Записывает всё, что бот отправил"""

    def __init__(self):
        self.sent = []          # (chat_id, text, kwargs)
        self.deleted = []       # (chat_id, message_id)
        self.actions = []       # (chat_id, action)
        self.fail_on = None     # подстрока: первая такая отправка падает
        self._next_id = 1

    async def send_message(self, chat_id, text, **kwargs):
        if self.fail_on and self.fail_on in text:
            self.fail_on = None
            raise TelegramBadRequest(method=None, message="Bad Request: can't parse entities")
        self.sent.append((chat_id, text, kwargs))
        message = SimpleNamespace(message_id=self._next_id, chat=SimpleNamespace(id=chat_id), text=text)
        self._next_id += 1
        return message

    async def delete_message(self, chat_id, message_id):
        self.deleted.append((chat_id, message_id))
        return True

    async def send_chat_action(self, chat_id, action):
        self.actions.append((chat_id, action))
        return True

    def texts(self) -> list:
        return [text for _, text, _ in self.sent]

    def last_text(self) -> str:
        return self.sent[-1][1] if self.sent else ""

    def joined(self) -> str:
        return "\n".join(self.texts())


class FakeRepository:
    """In-memory версия Database"""

    def __init__(self):
        self.users = {}             # telegram_id -> User
        self.sessions = {}          # user_id -> Session
        self.exercises = {}         # id -> Exercise
        self.user_exercises = []
        self.conversations = {}     # id -> Conversation
        self.messages = []          # ConversationMessage
        self.progress = {}          # user_id -> Progress
        self.achievements = []
        self.session_updates = 0

    # ─── Пользователи ───

    async def get_user(self, telegram_id):
        user = self.users.get(telegram_id)
        return replace(user) if user else None

    async def create_user(self, telegram_id, username='', first_name='', last_name='', language_code=''):
        if telegram_id not in self.users:
            self.users[telegram_id] = User(
                id=len(self.users) + 1,
                telegram_id=telegram_id,
                username=username,
                first_name=first_name,
                last_name=last_name,
                language_code=language_code,
            )
        return replace(self.users[telegram_id])

    async def update_user_level(self, user_id, level):
        for user in self.users.values():
            if user.id == user_id:
                user.english_level = level

    def user_by_id(self, user_id):
        return next(u for u in self.users.values() if u.id == user_id)

    # ─── Сессии ───

    async def get_or_create_session(self, user_id):
        if user_id not in self.sessions:
            self.sessions[user_id] = Session(user_id=user_id, id=len(self.sessions) + 1)
        return copy.deepcopy(self.sessions[user_id])

    async def update_session(self, session):
        self.sessions[session.user_id] = copy.deepcopy(session)
        self.session_updates += 1

    # ─── Упражнения ───

    async def save_exercise(self, exercise):
        saved = replace(exercise, id=len(self.exercises) + 1)
        self.exercises[saved.id] = saved
        return replace(saved)

    async def get_exercise(self, exercise_id):
        exercise = self.exercises.get(exercise_id)
        return replace(exercise) if exercise else None

    async def save_user_exercise(self, attempt):
        saved = replace(attempt, id=len(self.user_exercises) + 1)
        self.user_exercises.append(saved)
        return saved

    # ─── Диалоги ───

    async def start_conversation(self, user_id, level):
        conversation = Conversation(id=len(self.conversations) + 1, user_id=user_id, level=level)
        self.conversations[conversation.id] = conversation
        return conversation

    async def add_message(self, conversation_id, role, content):
        self.messages.append(ConversationMessage(
            conversation_id=conversation_id, role=role, content=content, id=len(self.messages) + 1,
        ))

    async def get_messages(self, conversation_id, limit=10):
        messages = [m for m in self.messages if m.conversation_id == conversation_id]
        return messages[-limit:]

    # ─── Прогресс ───

    def _progress(self, user_id):
        if user_id not in self.progress:
            self.progress[user_id] = Progress(user_id=user_id)
        return self.progress[user_id]

    async def get_progress(self, user_id):
        return replace(self._progress(user_id))

    async def increment_progress(self, user_id, **deltas):
        progress = self._progress(user_id)
        for counter, delta in deltas.items():
            if counter not in COUNTERS:
                raise ValueError(f"Unknown progress counter: {counter}")
            setattr(progress, counter, getattr(progress, counter) + delta)

    async def update_streak(self, user_id, current_streak, longest_streak, last_activity_date):
        progress = self._progress(user_id)
        progress.current_streak = current_streak
        progress.longest_streak = longest_streak
        progress.last_activity_date = last_activity_date

    # ─── Достижения ───

    async def add_achievement(self, achievement):
        for existing in self.achievements:
            if (existing.user_id, existing.achievement_type) == (achievement.user_id, achievement.achievement_type):
                return False
        self.achievements.append(achievement)
        return True

    async def get_achievements(self, user_id):
        return [a for a in self.achievements if a.user_id == user_id]


class FakeProvider:
    """Completion Provider: фиксированный ответ или ошибка"""

    def __init__(self, reply="Nice to meet you! How are you today?", error=None, delay=0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.generate_calls = []
        self.converse_calls = []

    async def _answer(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.reply

    async def generate(self, prompt, system_prompt):
        self.generate_calls.append((prompt, system_prompt))
        return await self._answer()

    async def converse(self, history):
        self.converse_calls.append(history)
        return await self._answer()


class FakeChecker:
    """Grammar Checker: заранее заданный список замечаний"""

    def __init__(self, issues=None, error=None):
        self.issues = issues or []
        self.error = error
        self.calls = []

    async def check(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return list(self.issues)


def make_message(text, telegram_id=TELEGRAM_ID, language_code="en"):
    """Объект с полями aiogram Message, которые читает машина"""
    return SimpleNamespace(
        text=text,
        chat=SimpleNamespace(id=telegram_id),
        from_user=SimpleNamespace(
            id=telegram_id,
            username="student",
            first_name="Anna",
            last_name="Petrova",
            language_code=language_code,
        ),
    )


def build_machine(provider=None, checker=None, templates=TEST_TEMPLATES, turn_timeout=5):
    """
    StateMachine с настоящей таблицей переходов и переводами,
    но с заглушками вместо Telegram, БД и внешних API.

    Returns:
        SimpleNamespace(machine, bot, db, llm, checker)
    """
    from config import TRANSITIONS_PATH
    from core.machine import StateMachine
    from core.storage import SessionStorage
    from engines.exercises import ExerciseGenerator
    from i18n import I18n
    from states.registry import register_all_states

    bot = FakeBot()
    db = FakeRepository()
    llm = provider or FakeProvider()
    checker = checker or FakeChecker()

    machine = StateMachine(TRANSITIONS_PATH, SessionStorage(db), bot=bot, i18n=I18n(),
                           turn_timeout=turn_timeout)
    register_all_states(machine, bot, db, llm, machine.i18n, checker=checker)
    machine.states["exercise"].generator = ExerciseGenerator(llm, templates=templates, rng=random.Random(7))

    return SimpleNamespace(machine=machine, bot=bot, db=db, llm=llm, checker=checker)


async def say(env, *texts, telegram_id=TELEGRAM_ID, language_code="en"):
    """Отправляет машине сообщения по очереди"""
    for text in texts:
        await env.machine.handle_message(make_message(text, telegram_id, language_code))


def session_of(env, telegram_id=TELEGRAM_ID) -> Session:
    user = env.db.users[telegram_id]
    return env.db.sessions[user.id]


def progress_of(env, telegram_id=TELEGRAM_ID) -> Progress:
    user = env.db.users[telegram_id]
    return env.db.progress[user.id]


__all__ = [
    'TELEGRAM_ID', 'TEST_TEMPLATES',
    'FakeBot', 'FakeRepository', 'FakeProvider', 'FakeChecker',
    'make_message', 'build_machine', 'say', 'session_of', 'progress_of',
    'Exercise', 'UserExercise', 'Achievement',
]
