"""
Ядро бота: общие компоненты.

Содержит:
- context.py: типизированный контекст сессии (по dataclass на стейт)
- errors.py: ошибки, прерывающие ход
- helpers.py: промпты и форматирование
- locks.py: UserLocks — поочерёдная обработка сообщений пользователя
- machine.py: StateMachine — движок переходов между стейтами
- middleware.py: логирование и rate limit для aiogram
- storage.py: SessionStorage — хранение сессий

StateMachine импортируется напрямую из core.machine: он зависит от states/,
а стейты — от core.
"""

from .errors import (
    TransientProviderFailure,
    ProviderError,
    CheckerError,
    MalformedContext,
    NotFound,
)

from .context import (
    IdleContext,
    ChatContext,
    GrammarCheckContext,
    ExerciseContext,
    ExerciseReplyContext,
    StateContext,
    parse_context,
    dump_context,
    state_of,
)

from .locks import UserLocks
from .storage import SessionStorage

__all__ = [
    # errors
    'TransientProviderFailure',
    'ProviderError',
    'CheckerError',
    'MalformedContext',
    'NotFound',
    # context
    'IdleContext',
    'ChatContext',
    'GrammarCheckContext',
    'ExerciseContext',
    'ExerciseReplyContext',
    'StateContext',
    'parse_context',
    'dump_context',
    'state_of',
    # locks
    'UserLocks',
    # storage
    'SessionStorage',
]
