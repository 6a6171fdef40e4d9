"""
Базовые классы для стейтов State Machine.

Каждый стейт — это отдельный файл в соответствующей папке:
- states/common/ — idle и информационные команды (/help, /progress, /level)
- states/practice/ — разговор (/chat) и проверка грамматики (/check)
- states/exercises/ — генерация упражнения и проверка ответа

Пример создания нового стейта:

    from states.base import BaseState, Entered

    class MyState(BaseState):
        name = "my_state"

        async def enter(self, user, context=None):
            await self.send(user, self.t("states.my_state.welcome", user))
            return Entered(MyContext())

        async def handle(self, user, message, context):
            # Обработка сообщения
            return "next_event"  # или None чтобы остаться
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import List, Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import Message

from config import get_logger
from core.context import StateContext, CONTEXT_TYPES
from core.helpers import escape_md
from db.entities import Achievement
from engines.progress import ProgressTracker
from i18n import detect_language

logger = get_logger(__name__)


@dataclass
class Entered:
    """
    Результат входа в стейт.

    context — контекст, который запишется в сессию.
    event — если задан, машина сразу переходит по нему, и context
            относится уже к целевому стейту (промежуточный стейт не сохраняется).
    """
    context: StateContext
    event: Optional[str] = None


class BaseHandler:
    """
    Общие зависимости и хелперы для стейтов и команд.

    Args:
        bot: Telegram bot instance (Chat Transport)
        db: Database repository
        llm: Completion Provider (GPTClient)
        i18n: Localization service
        checker: Grammar Checker (LanguageToolClient)
    """

    def __init__(self, bot: Bot, db, llm, i18n, checker=None):
        self.bot = bot
        self.db = db
        self.llm = llm
        self.i18n = i18n
        self.checker = checker
        self.progress = ProgressTracker(db)

    # =========================================
    # Вспомогательные методы
    # =========================================

    def lang(self, user) -> str:
        return detect_language(getattr(user, 'language_code', ''))

    def t(self, key: str, user, **kwargs) -> str:
        """
        Shortcut для локализации.

        Args:
            key: Ключ перевода (например, "states.chat.intro")
            user: Объект пользователя (для определения языка)
            **kwargs: Параметры для форматирования
        """
        return self.i18n.t(key, self.lang(user), **kwargs)

    async def send(self, user, text: str, **kwargs) -> Message:
        """Отправка обычного текста (без разметки)"""
        return await self.bot.send_message(user.telegram_id, text, **kwargs)

    async def send_md(self, user, text: str, **kwargs) -> Message:
        """Отправка с Markdown-разметкой"""
        return await self.send(user, text, parse_mode="Markdown", **kwargs)

    async def send_quietly(self, user, text: str, **kwargs) -> Optional[Message]:
        """
        Отправка после того, как результат хода уже записан.

        Ошибка Telegram только логируется: повторять ход из-за неё нельзя.
        """
        try:
            return await self.send(user, text, **kwargs)
        except TelegramAPIError as e:
            logger.warning(f"⚠️ Не удалось отправить сообщение user_id={user.id}: {e}")
            return None

    async def typing(self, user) -> None:
        await self.bot.send_chat_action(user.telegram_id, "typing")

    @asynccontextmanager
    async def wait_message(self, user, key: str):
        """
        Сообщение "подождите" на время долгой операции.

        Удаляется после выхода из блока, даже если операция упала.
        """
        sent = await self.send(user, self.t(key, user))
        try:
            yield sent
        finally:
            try:
                await self.bot.delete_message(user.telegram_id, sent.message_id)
            except TelegramAPIError as e:
                logger.warning(f"Не удалось удалить сообщение ожидания: {e}")

    async def announce(self, user, achievements: List[Achievement], quietly: bool = False) -> None:
        """Поздравляет с новыми достижениями"""
        send = self.send_quietly if quietly else self.send
        for achievement in achievements:
            text = self.t(
                "common.achievement", user,
                title=escape_md(achievement.title),
                description=escape_md(achievement.description),
            )
            await send(user, text, parse_mode="Markdown")

    async def record(self, user, kind: str, success: Optional[bool] = None) -> None:
        """Учесть активность и объявить полученные достижения"""
        unlocked = await self.progress.record_activity(user.id, kind, success)
        await self.announce(user, unlocked)


class BaseState(BaseHandler, ABC):
    """
    Базовый класс для всех стейтов.

    Один стейт = один файл.

    Атрибуты класса:
        name: Имя стейта, совпадает с SessionState и ключом в transitions.yaml
    """

    name: str = "base"

    async def enter(self, user, context: dict = None) -> Optional[Entered]:
        """
        Вызывается при ВХОДЕ в стейт.

        Args:
            user: Объект пользователя из БД
            context: Данные от машины: initial_text (текст после команды),
                     previous_context (контекст, с которым пришли), greet

        Returns:
            Entered с контекстом нового стейта или None, если вход
            не состоялся и сессия должна остаться как была
        """
        return Entered(CONTEXT_TYPES[self.name]())

    @abstractmethod
    async def handle(self, user, message: Message, context: StateContext) -> Optional[str]:
        """
        Обрабатывает входящее сообщение.

        Это главный метод стейта — здесь реализуется логика обработки.

        Args:
            user: Объект пользователя
            message: Сообщение от Telegram
            context: Разобранный контекст сессии для этого стейта

        Returns:
            Событие для перехода (str) или None если остаёмся в стейте.
        """
        pass

    async def exit(self, user) -> dict:
        """
        Вызывается при ВЫХОДЕ из стейта.

        Returns:
            Данные для передачи следующему стейту
        """
        return {}

    def __repr__(self) -> str:
        return f"<State: {self.name}>"
