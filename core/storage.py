"""
SessionStorage — хранение сессий State Machine.

Сессия = стейт + типизированный контекст. Меняются только парой:

    storage = SessionStorage(db)

    session = await storage.load(user)
    ctx = storage.context_of(session)          # MalformedContext, если не разобрать
    await storage.commit(session, ExerciseReplyContext(exercise_id=7, exercise_type="grammar"))
"""

import logging

from config import SessionState
from core.context import StateContext, ChatContext, parse_context, dump_context, state_of
from core.errors import MalformedContext
from db.entities import Session

logger = logging.getLogger(__name__)


class SessionStorage:
    """
    Загрузка и запись сессий через репозиторий.

    Args:
        db_repo: Репозиторий с методами get_or_create_session, update_session
    """

    def __init__(self, db_repo):
        self.db = db_repo

    async def load(self, user) -> Session:
        """Сессия пользователя (создаётся в idle при первом обращении)"""
        return await self.db.get_or_create_session(user.id)

    def context_of(self, session: Session) -> StateContext:
        """
        Разбирает контекст сессии под её стейт.

        Raises:
            MalformedContext: стейт неизвестен или контекст ему не подходит
        """
        if session.state not in SessionState.ALL:
            raise MalformedContext(session.state, "unknown state")
        return parse_context(session.state, session.context_data)

    def peek_context(self, session: Session):
        """Как context_of, но None вместо ошибки"""
        try:
            return self.context_of(session)
        except MalformedContext as e:
            logger.warning(f"Ignoring malformed context for user {session.user_id}: {e.reason}")
            return None

    async def commit(self, session: Session, ctx: StateContext) -> Session:
        """
        Записывает стейт и контекст одним обновлением.

        Стейт определяется типом контекста, поэтому рассогласовать их нельзя.
        """
        session.state = state_of(ctx)
        session.context_data = dump_context(ctx)
        session.conversation_id = ctx.conversation_id if isinstance(ctx, ChatContext) else None

        await self.db.update_session(session)
        logger.debug(f"Session saved for user {session.user_id}: {session.state} {session.context_data}")
        return session
