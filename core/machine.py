"""
StateMachine — движок переходов между стейтами.

Управляет:
- Регистрацией стейтов и информационных команд
- Обработкой входящих сообщений (один ход = одно сообщение)
- Выполнением переходов между стейтами
- Глобальными командами (/start, /chat, /check, /exercise, ...)

Использование:
    from core.machine import StateMachine
    from core.storage import SessionStorage

    storage = SessionStorage(db)
    machine = StateMachine(TRANSITIONS_PATH, storage, bot=bot, i18n=i18n)

    # Регистрируем стейты и команды
    machine.register(IdleState(...))
    machine.register_command("help", commands.help)

    # Обрабатываем сообщение
    await machine.handle_message(message)

Ход выполняется под замком пользователя (UserLocks) и с общим таймаутом.
Ошибки обрабатываются только здесь:
- TransientProviderFailure — извинение, сессия не меняется
- MalformedContext — извинение, сессия сбрасывается в idle
- остальное — лог с traceback, извинение, сессия не меняется
"""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Tuple

import yaml
from aiogram.types import Message

from config import TURN_TIMEOUT
from core.context import IdleContext, state_of
from core.errors import TransientProviderFailure, MalformedContext
from core.locks import UserLocks
from engines.progress import ProgressTracker
from i18n import detect_language
from states.base import BaseState, Entered

logger = logging.getLogger(__name__)

# Обработчик информационной команды: (user, session, args) -> None
CommandHandler = Callable[..., Awaitable[None]]

SAME = "_same"


class InvalidTransition(Exception):
    """Недопустимый переход между стейтами."""
    pass


class StateNotFound(Exception):
    """Стейт не найден в реестре."""
    pass


def parse_command(text: str) -> Tuple[Optional[str], str]:
    """
    Разбирает команду из текста сообщения.

    "/exercise@my_bot vocabulary" -> ("exercise", "vocabulary")
    "hello"                       -> (None, "hello")
    """
    text = (text or "").strip()
    if not text.startswith("/"):
        return None, text

    head, _, rest = text.partition(" ")
    command = head[1:].split("@", 1)[0].lower()
    return command, rest.strip()


class StateMachine:
    """
    Движок State Machine.

    Управляет переходами между стейтами на основе таблицы переходов.
    Таблица переходов загружается из YAML файла.
    """

    def __init__(self, transitions_path, storage, bot, i18n,
                 locks: Optional[UserLocks] = None, turn_timeout: float = TURN_TIMEOUT):
        """
        Args:
            transitions_path: Путь к transitions.yaml
            storage: SessionStorage для работы с сессиями
            bot: Telegram bot (для извинений и ответов на неизвестные команды)
            i18n: Локализация
            locks: Замки пользователей (по умолчанию новые)
            turn_timeout: Максимальная длительность хода в секундах
        """
        self.storage = storage
        self.db = storage.db
        self.bot = bot
        self.i18n = i18n
        self.locks = locks or UserLocks()
        self.turn_timeout = turn_timeout
        self.progress = ProgressTracker(self.db)

        self.states: dict[str, BaseState] = {}
        self.commands: dict[str, CommandHandler] = {}
        self.transitions: dict = {}
        self.global_events: dict = {}

        self._load_transitions(transitions_path)

    def _load_transitions(self, path) -> None:
        """Загружает таблицу переходов из YAML файла."""
        path = Path(path)
        if not path.exists():
            logger.warning(f"Transitions file not found: {path}. Using empty config.")
            return

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in transitions file: {e}")
            return

        self.transitions = config.get("states", {})
        self.global_events = config.get("global_events", {})
        logger.info(f"Loaded {len(self.transitions)} state transitions, {len(self.global_events)} commands")

    def register(self, state: BaseState) -> None:
        """Регистрирует стейт в машине."""
        if state.name in self.states:
            logger.warning(f"State {state.name} already registered, overwriting")
        self.states[state.name] = state
        logger.debug(f"Registered state: {state.name}")

    def register_all(self, states: list[BaseState]) -> None:
        """Регистрирует список стейтов."""
        for state in states:
            self.register(state)

    def register_command(self, event_name: str, handler: CommandHandler) -> None:
        """Регистрирует обработчик команды с target: _same (/help, /progress, ...)"""
        self.commands[event_name] = handler

    def get_state(self, state_name: str) -> BaseState:
        """
        Raises:
            MalformedContext: в сессии записан неизвестный стейт
        """
        if state_name not in self.states:
            raise MalformedContext(state_name, "state is not registered")
        return self.states[state_name]

    # =========================================
    # Ход
    # =========================================

    async def handle_message(self, message: Message) -> None:
        """
        Главный метод — обрабатывает входящее сообщение.

        1. Берёт замок пользователя
        2. Загружает (создаёт) пользователя и сессию
        3. Выполняет команду или передаёт текст текущему стейту
        """
        telegram_user = message.from_user
        if telegram_user is None:
            # Посты каналов и анонимные админы: отвечать некому
            logger.debug(f"Message without sender in chat {message.chat.id}, skipped")
            return

        lang = detect_language(telegram_user.language_code)

        async with self.locks.hold(telegram_user.id):
            try:
                await asyncio.wait_for(self._run_turn(message), timeout=self.turn_timeout)
            except asyncio.TimeoutError:
                logger.error(f"Turn timeout ({self.turn_timeout}s) for telegram_id={telegram_user.id}")
                await self._apologise(message.chat.id, lang)
            except Exception as e:
                logger.exception(f"Turn failed for telegram_id={telegram_user.id}: {e}")
                await self._apologise(message.chat.id, lang)

    async def _run_turn(self, message: Message) -> None:
        user = await self._load_user(message)
        session = await self.storage.load(user)
        lang = detect_language(user.language_code)

        try:
            await self._dispatch(user, session, message)
        except TransientProviderFailure as e:
            logger.error(f"Provider failure in state '{session.state}' for user {user.id}: {e}")
            await self._apologise(message.chat.id, lang)
        except MalformedContext as e:
            logger.warning(f"Malformed context in state '{e.state}' for user {user.id}: {e.reason}")
            await self.storage.commit(session, IdleContext())
            await self._apologise(message.chat.id, lang)
        except Exception as e:
            logger.exception(f"Unexpected error in state '{session.state}' for user {user.id}: {e}")
            await self._apologise(message.chat.id, lang)

    async def _load_user(self, message: Message):
        """Пользователь из БД; при первом сообщении создаётся из профиля Telegram"""
        tg = message.from_user
        user = await self.db.get_user(tg.id)
        if user:
            return user

        user = await self.db.create_user(
            tg.id,
            username=tg.username or '',
            first_name=tg.first_name or '',
            last_name=tg.last_name or '',
            language_code=tg.language_code or '',
        )
        # Первое сообщение: первый день серии
        await self.progress.touch(user.id)
        return user

    async def _dispatch(self, user, session, message: Message) -> None:
        command, args = parse_command(message.text or "")

        if command is not None:
            if command in self.global_events:
                logger.info(f"Global event triggered: {command}")
                await self._handle_global_event(user, session, command, args)
            else:
                await self.bot.send_message(
                    message.chat.id, self.i18n.t("common.unknown_command", detect_language(user.language_code))
                )
            return

        state = self.get_state(session.state)
        context = self.storage.context_of(session)
        logger.debug(f"Handling message in state: {state.name}")

        event = await state.handle(user, message, context)

        if event:
            logger.info(f"State {state.name} returned event: {event}")
            await self.transition(user, session, event, context={"previous_context": context})

    async def _handle_global_event(self, user, session, event_name: str, args: str) -> None:
        """
        Обрабатывает глобальную команду.

        Текст после команды передаётся в стейт как initial_text.
        """
        config = self.global_events.get(event_name, {})
        target_state = config.get("target")

        if not target_state:
            logger.warning(f"No target state for global event: {event_name}")
            return

        if target_state == SAME:
            handler = self.commands.get(event_name)
            if handler is None:
                logger.warning(f"No handler registered for command: {event_name}")
                return
            await handler(user, session, args)
            return

        context = {"previous_context": self.storage.peek_context(session)}
        if args:
            context["initial_text"] = args
        if event_name == "start":
            context["greet"] = True

        await self.transition(user, session, event_name, force_target=target_state, context=context)

    async def transition(
        self,
        user,
        session,
        event: str,
        force_target: str = None,
        context: dict = None
    ) -> None:
        """
        Выполняет переход между стейтами и сохраняет сессию.

        Args:
            user: Объект пользователя
            session: Сессия пользователя
            event: Событие, вызвавшее переход
            force_target: Принудительный целевой стейт (для глобальных событий)
            context: Данные для enter() следующего стейта
        """
        current_state_name = session.state
        next_state_name = force_target or self._get_next_state(current_state_name, event)

        if not next_state_name:
            logger.warning(f"No transition for event '{event}' from state '{current_state_name}'")
            return

        if next_state_name == SAME:
            logger.debug(f"Staying in state: {current_state_name}")
            return

        next_state = self.states.get(next_state_name)
        if not next_state:
            raise StateNotFound(f"Target state not found: {next_state_name}")

        exit_context = {}
        current_state = self.states.get(current_state_name)
        if current_state:
            exit_context = await current_state.exit(user) or {}

        entered = await next_state.enter(user, {**exit_context, **(context or {})})
        if entered is None:
            logger.info(f"State {next_state_name} declined entry, session unchanged")
            return

        logger.info(f"Transition: {current_state_name} -> {next_state_name} (event: {event})")
        target_name = next_state_name

        # Транзитный стейт сразу отдаёт событие: идём дальше, не сохраняя его
        if entered.event:
            follow = self._get_next_state(next_state_name, entered.event)
            if follow and follow != SAME:
                logger.info(f"Transition: {next_state_name} -> {follow} (event: {entered.event})")
                target_name = follow

        self._check_context(target_name, entered)
        await self.storage.commit(session, entered.context)

    def _check_context(self, state_name: str, entered: Entered) -> None:
        if state_of(entered.context) != state_name:
            raise InvalidTransition(
                f"Context {type(entered.context).__name__} does not belong to state '{state_name}'"
            )

    def _get_next_state(self, current: str, event: str) -> Optional[str]:
        """
        Определяет следующий стейт по таблице переходов.

        Args:
            current: Имя текущего стейта
            event: Событие

        Returns:
            Имя следующего стейта или None
        """
        if event in self.global_events:
            return self.global_events[event].get("target")

        state_config = self.transitions.get(current, {})
        events = state_config.get("events", {})
        return events.get(event)

    async def _apologise(self, chat_id: int, lang: str) -> None:
        try:
            await self.bot.send_message(chat_id, self.i18n.t("common.error", lang))
        except Exception as e:
            logger.error(f"Failed to send apology to {chat_id}: {e}")
