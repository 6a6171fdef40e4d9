"""
Реестр стейтов State Machine.

Содержит функцию регистрации всех стейтов и команд в StateMachine.
При добавлении нового стейта нужно:
1. Импортировать его здесь
2. Добавить в список states в функции register_all_states
3. Описать его переходы в config/transitions.yaml
"""

import logging

from aiogram import Bot

from core.machine import StateMachine
from i18n import I18n

from states.common import IdleState, InfoCommands
from states.practice import ChatState, GrammarCheckState
from states.exercises import ExerciseState, ExerciseReplyState

logger = logging.getLogger(__name__)


def register_all_states(
    machine: StateMachine,
    bot: Bot,
    db,
    llm,
    i18n: I18n,
    checker,
) -> None:
    """
    Регистрирует все стейты и информационные команды в StateMachine.

    Args:
        machine: Экземпляр StateMachine
        bot: Telegram Bot instance
        db: Database repository
        llm: Completion Provider (GPTClient)
        i18n: Локализация
        checker: Grammar Checker (LanguageToolClient)
    """
    # Общие аргументы для всех стейтов
    args = (bot, db, llm, i18n)

    states = [
        IdleState(*args, checker=checker),
        ChatState(*args, checker=checker),
        GrammarCheckState(*args, checker=checker),
        ExerciseState(*args, checker=checker),
        ExerciseReplyState(*args, checker=checker),
    ]

    machine.register_all(states)
    InfoCommands(*args, checker=checker).register(machine)
    logger.info(f"Registered {len(states)} states, {len(machine.commands)} commands")
