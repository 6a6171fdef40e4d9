"""
Стейт: Покой, пользователь не выбрал занятие.

Вход: /start (с приветствием) или после завершённого занятия
Выход: любая команда; свободный текст — подсказка с командами
"""

from typing import Optional

from aiogram.types import Message

from config import SessionState
from core.context import IdleContext
from states.base import BaseState, Entered


class IdleState(BaseState):

    name = SessionState.IDLE

    async def enter(self, user, context: dict = None) -> Entered:
        if context and context.get("greet"):
            await self.send_md(user, self.t("common.welcome", user))
        return Entered(IdleContext())

    async def handle(self, user, message: Message, context) -> Optional[str]:
        await self.send(user, self.t("common.choose_command", user))
        return "prompted"
