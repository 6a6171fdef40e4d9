"""
Стейт: Свободный разговор с репетитором (/chat).

Вход: /chat — продолжаем текущий диалог или начинаем новый
Сообщение: ответ LLM с учётом уровня и последних сообщений диалога
Выход: любая другая команда
"""

from typing import Optional

from aiogram.types import Message

from config import SessionState, ActivityKind, get_logger
from config.features import flags
from core.context import ChatContext
from core.helpers import get_chat_system_prompt, build_chat_history
from states.base import BaseState, Entered

logger = get_logger(__name__)


class ChatState(BaseState):

    name = SessionState.CHAT

    async def enter(self, user, context: dict = None) -> Entered:
        context = context or {}
        previous = context.get("previous_context")

        if isinstance(previous, ChatContext):
            ctx = previous
            await self.send_md(user, self.t("states.chat.resumed", user))
        else:
            conversation = await self.db.start_conversation(user.id, user.english_level)
            ctx = ChatContext(conversation_id=conversation.id)
            logger.info(f"💬 Новый диалог {conversation.id} для user_id={user.id}")
            await self.send_md(user, self.t("states.chat.intro", user))

        # "/chat How are you?": сразу отвечаем на текст после команды
        initial_text = context.get("initial_text")
        if initial_text:
            await self.reply(user, ctx, initial_text)

        # Диалог засчитывается, только если вход состоялся целиком
        if not isinstance(previous, ChatContext):
            await self.record(user, ActivityKind.CONVERSATION)

        return Entered(ctx)

    async def handle(self, user, message: Message, context: ChatContext) -> Optional[str]:
        await self.reply(user, context, message.text or "")
        return "replied"

    async def reply(self, user, context: ChatContext, text: str) -> None:
        """Сохраняет реплику, получает ответ LLM, отправляет и сохраняет его"""
        await self.db.add_message(context.conversation_id, "user", text)
        await self.typing(user)

        limit = flags.get_int("chat.history_limit", 10)
        messages = await self.db.get_messages(context.conversation_id, limit)
        history = build_chat_history(get_chat_system_prompt(user.english_level), messages)

        answer = await self.llm.converse(history)

        await self.db.add_message(context.conversation_id, "assistant", answer)
        await self.send(user, answer)
        await self.record(user, ActivityKind.MESSAGE)
